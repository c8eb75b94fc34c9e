"""Pytest configuration and fixtures for unit tests.

Seeds environment variables before src.utils.config is imported so the
module-level config validates without a real .env file.
"""

import os

os.environ["GEMINI_API_KEY"] = os.environ.get("GEMINI_API_KEY") or "test-gemini-key"
os.environ.setdefault("IN_MEMORY_STORE", "true")
os.environ.setdefault("STREAM_DELAY_MS", "0")

import pytest  # noqa: E402

from helpers import ScriptedCompletionClient  # noqa: E402
from src.generation.batch import BatchGenerator  # noqa: E402
from src.storage.kv_store import InMemoryKVStore  # noqa: E402


@pytest.fixture
def scripted_client():
    """Factory: scripted_client(response_or_exception, ...)."""

    def _make(*responses) -> ScriptedCompletionClient:
        return ScriptedCompletionClient(list(responses))

    return _make


@pytest.fixture
def make_generator(scripted_client):
    """Factory: BatchGenerator over a scripted client; the client is exposed as .client."""

    def _make(*responses) -> BatchGenerator:
        return BatchGenerator(scripted_client(*responses), temperature=0.8, max_tokens=2000)

    return _make


@pytest.fixture
def memory_store() -> InMemoryKVStore:
    return InMemoryKVStore()
