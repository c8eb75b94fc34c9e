"""Recipe Stream Service - application entry point.

Single entry point for the HTTP service:
- Builds the FastAPI app (generation stream, liked recipes, feedback)
- Opens the key-value store selected by DATABASE_URL / IN_MEMORY_STORE
- Serves with uvicorn on PORT

Run with: python app.py
"""

import uvicorn

from src.api.app import create_app
from src.utils.config import config
from src.utils.logger import logger


app = create_app()


if __name__ == "__main__":
    logger.info(f"Starting Recipe Stream Service on port {config.PORT}")
    logger.info(f"Completion model: {config.GEMINI_MODEL} ({config.BATCH_COUNT} x {config.BATCH_SIZE} recipes)")
    if not config.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set - generation requests will end with an error event")
    logger.info(f"API docs available at: http://localhost:{config.PORT}/docs")
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
