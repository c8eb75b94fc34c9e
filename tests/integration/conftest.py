"""Pytest configuration and fixtures for integration tests.

These tests call the real Gemini API. They are deselected by default
(``-m "not integration"`` in pyproject.toml); run them with:

    pytest -m integration tests/integration
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Load .env from the project root and keep storage out of the way."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    os.environ["IN_MEMORY_STORE"] = "true"
    os.environ["STREAM_DELAY_MS"] = "0"

    print("\n" + "=" * 70)
    print("Note: These tests require a valid GEMINI_API_KEY")
    print(f"Environment loaded from: {env_path}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session", autouse=True)
def check_api_key():
    """Skip the session when no Gemini key is configured."""
    if not os.getenv("GEMINI_API_KEY"):
        pytest.skip("GEMINI_API_KEY not configured in .env")
