"""Streaming orchestration of a recipe generation request.

StreamOrchestrator turns one GenerationRequest into an ordered sequence of
stream events:

    suggestions -> recipe * N -> complete | error

State machine:
    VALIDATING -> EMITTING_SUGGESTIONS -> BATCH1_IN_FLIGHT -> BATCH1_STREAMING
    -> BATCH2_IN_FLIGHT -> BATCH2_STREAMING -> COMPLETE
    ERRORED is reachable from every non-terminal state.

Batches run strictly one after another. A failing batch ends the stream with a
single error event; recipes already emitted stay valid for the consumer.
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import AsyncIterator, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from src.generation.batch import BatchGenerator
from src.generation.completion import create_completion_client
from src.models.models import (
    CompleteEvent,
    ErrorEvent,
    GenerationRequest,
    RecipeEvent,
    RecipeRecord,
    SuggestionsEvent,
)
from src.prompts.prompts import build_context
from src.utils.config import config
from src.utils.errors import RecipeServiceError, ValidationError
from src.utils.logger import logger


GRADIENTS = [
    "linear-gradient(135deg, #667eea 0%, #764ba2 100%)",
    "linear-gradient(135deg, #f093fb 0%, #f5576c 100%)",
    "linear-gradient(135deg, #4facfe 0%, #00f2fe 100%)",
    "linear-gradient(135deg, #43e97b 0%, #38f9d7 100%)",
    "linear-gradient(135deg, #fa709a 0%, #fee140 100%)",
    "linear-gradient(135deg, #30cfd0 0%, #330867 100%)",
]

FEW_INGREDIENTS_SUGGESTION = (
    "Your ingredients are a great start! Consider adding proteins like chicken or tofu, "
    "and fresh vegetables to unlock even more delicious recipe possibilities."
)
ENOUGH_INGREDIENTS_SUGGESTION = (
    "Your ingredients make a great base! These recipes maximize what you have. "
    "Consider adding complementary items like fresh herbs or spices to elevate your dishes."
)

_BATCH_NAMES = ["First", "Second"]


class GenerationState(str, Enum):
    VALIDATING = "validating"
    EMITTING_SUGGESTIONS = "emitting_suggestions"
    BATCH1_IN_FLIGHT = "batch1_in_flight"
    BATCH1_STREAMING = "batch1_streaming"
    BATCH2_IN_FLIGHT = "batch2_in_flight"
    BATCH2_STREAMING = "batch2_streaming"
    COMPLETE = "complete"
    ERRORED = "errored"


def build_suggestions(ingredients: list[str]) -> str:
    """Advisory text sent before any recipe."""
    if len(ingredients) < 3:
        return FEW_INGREDIENTS_SUGGESTION
    return ENOUGH_INGREDIENTS_SUGGESTION


def batch_name(batch_index: int) -> str:
    """Human-readable batch label used in error messages ("First", "Second", "Batch 3")."""
    if batch_index < len(_BATCH_NAMES):
        return _BATCH_NAMES[batch_index]
    return f"Batch {batch_index + 1}"


def _in_flight_state(batch_index: int) -> GenerationState:
    return GenerationState.BATCH1_IN_FLIGHT if batch_index == 0 else GenerationState.BATCH2_IN_FLIGHT


def _streaming_state(batch_index: int) -> GenerationState:
    return GenerationState.BATCH1_STREAMING if batch_index == 0 else GenerationState.BATCH2_STREAMING


def validate_request(payload: Union[GenerationRequest, dict, None]) -> GenerationRequest:
    """Validate an incoming request body.

    Raises:
        ValidationError: If the body is missing or has no usable ingredients.
    """
    if isinstance(payload, GenerationRequest):
        request = payload
    else:
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        try:
            request = GenerationRequest.model_validate(payload)
        except PydanticValidationError as e:
            if any(err["loc"] and err["loc"][0] == "ingredients" for err in e.errors()):
                raise ValidationError("No ingredients provided") from e
            raise ValidationError(f"Invalid request: {e.errors()[0]['msg']}") from e

    if not request.ingredients:
        raise ValidationError("No ingredients provided")
    return request


class StreamOrchestrator:
    """Coordinates one generation request. Create one instance per request."""

    def __init__(
        self,
        generator: Optional[BatchGenerator] = None,
        batch_size: Optional[int] = None,
        batch_count: Optional[int] = None,
        stream_delay_ms: Optional[int] = None,
        request_id: Optional[str] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            generator: Batch generator. Built from configuration on first use when None.
            batch_size: Recipes per batch. Defaults to config.BATCH_SIZE.
            batch_count: Number of sequential batches. Defaults to config.BATCH_COUNT.
            stream_delay_ms: Pause after each recipe event. Defaults to config.STREAM_DELAY_MS.
            request_id: Identifier attached to log records.
        """
        self.generator = generator
        self.batch_size = batch_size or config.BATCH_SIZE
        self.batch_count = batch_count or config.BATCH_COUNT
        self.stream_delay_ms = config.STREAM_DELAY_MS if stream_delay_ms is None else stream_delay_ms
        self.request_id = request_id or uuid.uuid4().hex[:8]
        self.log = logging.LoggerAdapter(logger, {"request_id": self.request_id})
        self.state = GenerationState.VALIDATING
        self.history: list[GenerationState] = [self.state]

    def _transition(self, state: GenerationState) -> None:
        self.log.debug(f"State {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _fail(self, message: str) -> ErrorEvent:
        self._transition(GenerationState.ERRORED)
        return ErrorEvent(message=message)

    def _resolve_generator(self) -> BatchGenerator:
        if self.generator is None:
            self.generator = BatchGenerator(create_completion_client())
        return self.generator

    async def handle_generate(
        self, payload: Union[GenerationRequest, dict, None]
    ) -> AsyncIterator[Union[SuggestionsEvent, RecipeEvent, CompleteEvent, ErrorEvent]]:
        """Run the generation and yield stream events in emission order.

        Args:
            payload: Request body (dict) or an already validated GenerationRequest.

        Yields:
            SuggestionsEvent, then RecipeEvents, then one CompleteEvent or ErrorEvent.
        """
        try:
            request = validate_request(payload)
        except ValidationError as e:
            self.log.warning(f"Rejected generation request: {e}")
            yield self._fail(str(e))
            return

        self.log.info(
            f"🔍 Streaming recipes for: ingredients={request.ingredients}, goal={request.main_goal}, "
            f"dietary={request.dietary_restrictions}, meal={request.meal_type}"
        )

        try:
            generator = self._resolve_generator()
        except ValueError as e:
            self.log.error(f"❌ Completion client not configured: {e}")
            yield self._fail("Completion API key not configured")
            return

        self._transition(GenerationState.EMITTING_SUGGESTIONS)
        yield SuggestionsEvent(data=build_suggestions(request.ingredients))

        goal_text, dietary_text, meal_text = build_context(
            request.main_goal, request.dietary_restrictions, request.meal_type
        )

        emitted = 0
        for batch_index in range(self.batch_count):
            name = batch_name(batch_index)
            batch_log = logging.LoggerAdapter(logger, {"request_id": self.request_id, "batch": name.lower()})
            self._transition(_in_flight_state(batch_index))
            batch_log.info(f"🔄 Starting {name.lower()} batch ({self.batch_size} recipes)...")

            try:
                drafts = await generator.generate_batch(
                    request.ingredients, goal_text, dietary_text, meal_text, self.batch_size
                )
            except RecipeServiceError as e:
                batch_log.error(f"❌ Error in {name.lower()} batch: {e}")
                yield self._fail(f"{name} batch error: {e}")
                return
            except Exception as e:
                batch_log.error(f"❌ Unexpected error in {name.lower()} batch: {e}", exc_info=True)
                yield self._fail(f"{name} batch error: {e}")
                return

            batch_log.info(f"✅ {name} batch received: {len(drafts)} recipes")
            self._transition(_streaming_state(batch_index))

            offset = batch_index * self.batch_size
            for local_index, draft in enumerate(drafts):
                global_index = offset + local_index
                recipe = RecipeRecord.from_draft(
                    draft,
                    recipe_id=global_index + 1,
                    gradient=GRADIENTS[global_index % len(GRADIENTS)],
                )
                yield RecipeEvent(data=recipe)
                emitted += 1
                batch_log.info(f"✅ Streamed recipe {recipe.id}: {recipe.name}")

                if self.stream_delay_ms:
                    await asyncio.sleep(self.stream_delay_ms / 1000)

        self._transition(GenerationState.COMPLETE)
        self.log.info(f"✅ Streaming complete ({emitted} recipes)")
        yield CompleteEvent()
