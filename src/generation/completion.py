"""Completion API client used by the batch generator.

The completion service is a black box: one call takes a system instruction,
a user prompt, a temperature and an output-token budget, and returns generated
text. The default implementation talks to Gemini through ``google-genai``.
"""

import asyncio
from typing import Optional, Protocol

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from src.utils.config import config
from src.utils.errors import UpstreamError, UpstreamTimeoutError
from src.utils.logger import logger


class CompletionClient(Protocol):
    """Anything that can turn a prompt into generated text."""

    async def complete(
        self,
        system_instruction: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        ...


class GeminiCompletionClient:
    """Completion client backed by the Gemini API (single attempt, no retries)."""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Gemini API key.
            model: Model identifier. Defaults to config.GEMINI_MODEL.
            timeout_seconds: Optional bound on each call. None means no bound
                beyond the transport's own.

        Raises:
            ValueError: If api_key is empty.
        """
        if not api_key:
            raise ValueError("GEMINI_API_KEY is required")

        self.model = model or config.GEMINI_MODEL
        self.timeout_seconds = timeout_seconds
        self._client = genai.Client(api_key=api_key)

    async def complete(
        self,
        system_instruction: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Send one generation request and return the response text.

        Raises:
            UpstreamError: Non-success status or an empty response.
            UpstreamTimeoutError: The call exceeded timeout_seconds.
        """
        call = self._client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                temperature=temperature,
                max_output_tokens=max_tokens,
            ),
        )

        try:
            if self.timeout_seconds:
                response = await asyncio.wait_for(call, timeout=self.timeout_seconds)
            else:
                response = await call
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(
                f"Completion API did not answer within {self.timeout_seconds}s"
            ) from e
        except genai_errors.APIError as e:
            logger.error(f"Completion API error response: {e.code} {e.message}")
            raise UpstreamError(
                f"Completion API error: {e.code} - {e.message}",
                status=e.code,
                body=str(e.message or ""),
            ) from e

        text = response.text
        if not text:
            raise UpstreamError("Completion API returned an empty response")
        return text


def create_completion_client() -> GeminiCompletionClient:
    """Build the default completion client from configuration.

    Raises:
        ValueError: If GEMINI_API_KEY is not configured.
    """
    return GeminiCompletionClient(
        api_key=config.require_api_key(),
        model=config.GEMINI_MODEL,
        timeout_seconds=config.UPSTREAM_TIMEOUT_SECONDS,
    )
