"""Configuration management for Recipe Stream Service.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os
from typing import Optional

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _get_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Gemini API Key: required only when recipes are generated
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Completion model used for both recipe batches
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        # Temperature: recipes favor variety over determinism. Default: 0.8
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.8"))
        # Max Output Tokens: one batch of 3 recipes fits comfortably in 2000
        self.MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "2000"))
        # Recipes requested per upstream call
        self.BATCH_SIZE: int = int(os.getenv("BATCH_SIZE", "3"))
        # Number of sequential upstream calls per generation request
        self.BATCH_COUNT: int = int(os.getenv("BATCH_COUNT", "2"))
        # Upstream timeout in seconds. Unset means no timeout (transport default only)
        timeout = os.getenv("UPSTREAM_TIMEOUT_SECONDS")
        self.UPSTREAM_TIMEOUT_SECONDS: Optional[float] = float(timeout) if timeout else None
        # Pause between recipe writes, in milliseconds. Default: 0 (no pause)
        self.STREAM_DELAY_MS: int = int(os.getenv("STREAM_DELAY_MS", "0"))
        # Server Port
        self.PORT: int = int(os.getenv("PORT", "7777"))
        # Comma-separated list of allowed CORS origins
        self.CORS_ORIGINS: list[str] = [
            origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
        ]
        # Database URL: SQLAlchemy URL for the key-value store (PostgreSQL in production)
        self.DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
        # SQLite file used when DATABASE_URL is not set
        self.STORE_DB_FILE: str = os.getenv("STORE_DB_FILE", "tmp/recipe_store.db")
        # Use an in-memory store instead of a database (handy for demos and tests)
        self.IN_MEMORY_STORE: bool = _get_bool("IN_MEMORY_STORE", "false")

    @property
    def total_recipes(self) -> int:
        """Number of recipes a fully successful generation delivers."""
        return self.BATCH_SIZE * self.BATCH_COUNT

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the key-value store."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite:///{self.STORE_DB_FILE}"

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If invalid values are provided.
        """
        if not (0.0 <= self.TEMPERATURE <= 2.0):
            raise ValueError(
                f"TEMPERATURE must be between 0.0 and 2.0, got: {self.TEMPERATURE}"
            )
        if self.MAX_OUTPUT_TOKENS < 512:
            raise ValueError(
                f"MAX_OUTPUT_TOKENS must be at least 512, got: {self.MAX_OUTPUT_TOKENS}"
            )
        if self.BATCH_SIZE < 1:
            raise ValueError(f"BATCH_SIZE must be at least 1, got: {self.BATCH_SIZE}")
        if self.BATCH_COUNT < 1:
            raise ValueError(f"BATCH_COUNT must be at least 1, got: {self.BATCH_COUNT}")
        if self.UPSTREAM_TIMEOUT_SECONDS is not None and self.UPSTREAM_TIMEOUT_SECONDS <= 0:
            raise ValueError(
                f"UPSTREAM_TIMEOUT_SECONDS must be positive, got: {self.UPSTREAM_TIMEOUT_SECONDS}"
            )
        if self.STREAM_DELAY_MS < 0:
            raise ValueError(f"STREAM_DELAY_MS must be >= 0, got: {self.STREAM_DELAY_MS}")

    def require_api_key(self) -> str:
        """Return the Gemini API key.

        Raises:
            ValueError: If GEMINI_API_KEY is not configured.
        """
        if not self.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY environment variable is required")
        return self.GEMINI_API_KEY


# Create module-level config instance and validate immediately
config = Config()
config.validate()
