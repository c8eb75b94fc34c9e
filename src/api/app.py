"""HTTP API for the recipe stream service.

Routes:
- POST   /generate-recipes        streaming recipe generation (text/event-stream)
- GET    /liked-recipes           all liked recipes
- POST   /liked-recipes           like (upsert) a recipe
- DELETE /liked-recipes/{name}    unlike by recipe name
- POST   /feedback                submit feedback
- GET    /feedback                all feedback entries
- GET    /feedback/stats          feedback aggregates
- GET    /health, /check-config   liveness and configuration checks
"""

import json
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from src.generation.batch import BatchGenerator
from src.generation.completion import create_completion_client
from src.generation.orchestrator import StreamOrchestrator
from src.models.models import ErrorEvent
from src.storage.kv_store import KeyValueStore, create_store
from src.storage.repositories import FeedbackLog, LikedRecipes
from src.streaming.protocol import MEDIA_TYPE, encode_event
from src.utils.config import config
from src.utils.errors import ValidationError
from src.utils.logger import logger


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _batch_generator(app: FastAPI) -> Optional[BatchGenerator]:
    """Shared batch generator, built on first use. None when no API key is configured."""
    if app.state.generator is None:
        try:
            app.state.generator = BatchGenerator(create_completion_client())
        except ValueError as e:
            logger.error(f"❌ Completion client unavailable: {e}")
            return None
    return app.state.generator


async def _event_stream(orchestrator: StreamOrchestrator, payload) -> AsyncIterator[str]:
    async for event in orchestrator.handle_generate(payload):
        yield encode_event(event)


def create_app(
    store: Optional[KeyValueStore] = None,
    generator: Optional[BatchGenerator] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        store: Key-value store. Defaults to the one selected by configuration.
        generator: Batch generator. Defaults to a Gemini-backed generator created on first request.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(title="Recipe Stream Service", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Content-Length"],
        max_age=600,
    )

    store = store if store is not None else create_store()
    app.state.store = store
    app.state.generator = generator
    app.state.liked = LikedRecipes(store)
    app.state.feedback = FeedbackLog(store)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/check-config")
    def check_config():
        return {"hasApiKey": bool(config.GEMINI_API_KEY), "model": config.GEMINI_MODEL}

    @app.post("/generate-recipes")
    async def generate_recipes(request: Request):
        orchestrator = StreamOrchestrator(generator=_batch_generator(app))
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Generation request body is not valid JSON")

            async def invalid_body():
                yield encode_event(ErrorEvent(message="Request body must be valid JSON"))

            return StreamingResponse(invalid_body(), media_type=MEDIA_TYPE)

        return StreamingResponse(
            _event_stream(orchestrator, payload),
            media_type=MEDIA_TYPE,
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    @app.get("/liked-recipes")
    def get_liked_recipes():
        try:
            return {"recipes": app.state.liked.list_all()}
        except Exception as e:
            logger.error(f"❌ Error fetching liked recipes: {e}", exc_info=True)
            return _error("Failed to fetch liked recipes", 500)

    @app.post("/liked-recipes")
    def add_liked_recipe(recipe: dict):
        try:
            app.state.liked.like(recipe)
            return {"success": True, "message": "Recipe saved"}
        except ValidationError as e:
            return _error(str(e), 400)
        except Exception as e:
            logger.error(f"❌ Error saving liked recipe: {e}", exc_info=True)
            return _error("Failed to save recipe", 500)

    @app.delete("/liked-recipes/{name:path}")
    def remove_liked_recipe(name: str):
        try:
            app.state.liked.unlike(name)
            return {"success": True, "message": "Recipe removed"}
        except Exception as e:
            logger.error(f"❌ Error removing liked recipe: {e}", exc_info=True)
            return _error("Failed to remove recipe", 500)

    @app.post("/feedback")
    def submit_feedback(body: dict):
        try:
            app.state.feedback.submit(
                rating=body.get("rating"),
                feedback=body.get("feedback") or "",
                timestamp=body.get("timestamp"),
            )
            return {"success": True, "message": "Thank you for your feedback!"}
        except ValidationError as e:
            return _error(str(e), 400)
        except Exception as e:
            logger.error(f"❌ Error saving feedback: {e}", exc_info=True)
            return _error("Failed to save feedback", 500)

    @app.get("/feedback")
    def get_feedback():
        try:
            return {"feedbacks": app.state.feedback.list_all()}
        except Exception as e:
            logger.error(f"❌ Error fetching feedback: {e}", exc_info=True)
            return _error("Failed to fetch feedback", 500)

    @app.get("/feedback/stats")
    def get_feedback_stats():
        try:
            return app.state.feedback.stats().to_wire()
        except Exception as e:
            logger.error(f"❌ Error computing feedback stats: {e}", exc_info=True)
            return _error("Failed to fetch feedback", 500)

    return app
