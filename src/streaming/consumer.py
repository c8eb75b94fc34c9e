"""Client-side incremental consumer of the recipe event stream.

Bytes arrive in arbitrary chunks; FrameDecoder keeps one running text buffer,
splits it on the blank-line separator and decodes every complete frame,
holding back the trailing fragment until the next chunk. StreamConsumer applies
decoded events, in arrival order, to an observable RecipeStreamState so a UI can
render "N of 6 ready" while recipes trickle in.

Malformed frames are logged and skipped. An error frame ends processing.
A stream that ends without ``complete`` or ``error`` is INCOMPLETE; callers
decide whether to warn about it.
"""

import asyncio
import codecs
from enum import Enum
from typing import AsyncIterable, AsyncIterator, Callable, Optional, Union

import aiohttp

from src.models.models import (
    CompleteEvent,
    ErrorEvent,
    GenerationRequest,
    RecipeEvent,
    RecipeRecord,
    SuggestionsEvent,
)
from src.streaming.protocol import FRAME_PREFIX, FRAME_SEPARATOR, AnyEvent, decode_frame
from src.utils.config import config
from src.utils.errors import TransportError
from src.utils.logger import logger


class GenerationOutcome(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    ERROR = "error"
    INCOMPLETE = "incomplete"


class FrameDecoder:
    """Reassembles ``data: <json>\\n\\n`` frames from byte chunks."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text received but not yet forming a complete frame."""
        return self._buffer

    def _decode(self, chunk: bytes, final: bool = False) -> str:
        try:
            return self._decoder.decode(chunk, final=final)
        except UnicodeDecodeError as e:
            raise TransportError(f"Stream is not valid UTF-8: {e}") from e

    def _blocks(self, text: str) -> list[str]:
        self._buffer = (self._buffer + text).replace("\r\n", "\n")
        blocks = self._buffer.split(FRAME_SEPARATOR)
        self._buffer = blocks.pop()
        return blocks

    def feed(self, chunk: bytes) -> list[Union[AnyEvent, None]]:
        """Add a chunk and return events for every frame it completed.

        Blank blocks and blocks without the ``data: `` prefix are ignored.
        Blocks that fail to decode are logged and returned as None so the
        caller can count them without aborting the stream.

        Raises:
            TransportError: If the bytes are not valid UTF-8.
        """
        return [self._decode_block(block) for block in self._blocks(self._decode(chunk)) if self._is_frame(block)]

    def finish(self) -> list[Union[AnyEvent, None]]:
        """Flush the decoder at end of stream and decode a final unterminated frame."""
        blocks = self._blocks(self._decode(b"", final=True))
        tail, self._buffer = self._buffer, ""
        if tail.strip():
            blocks.append(tail)
        return [self._decode_block(block) for block in blocks if self._is_frame(block)]

    @staticmethod
    def _is_frame(block: str) -> bool:
        return bool(block.strip()) and block.lstrip("\n").startswith(FRAME_PREFIX)

    @staticmethod
    def _decode_block(block: str) -> Optional[AnyEvent]:
        try:
            return decode_frame(block)
        except ValueError as e:
            logger.warning(f"Failed to parse message: {block[:120]!r} ({e})")
            return None


Observer = Callable[["RecipeStreamState"], None]


class RecipeStreamState:
    """Observable generation state: suggestions, recipes so far and the outcome."""

    def __init__(self, expected_total: Optional[int] = None) -> None:
        self.expected_total = expected_total or config.total_recipes
        self._observers: dict[str, list[Callable]] = {"suggestions": [], "recipe": [], "terminal": []}
        self.reset()

    def reset(self) -> None:
        """Clear results before a new (or retried) generation."""
        self.suggestions: Optional[str] = None
        self.recipes: list[RecipeRecord] = []
        self.outcome = GenerationOutcome.PENDING
        self.error: Optional[str] = None
        self.skipped_frames = 0

    def on_suggestions(self, callback: Callable[[str], None]) -> None:
        self._observers["suggestions"].append(callback)

    def on_recipe(self, callback: Callable[[RecipeRecord, "RecipeStreamState"], None]) -> None:
        self._observers["recipe"].append(callback)

    def on_terminal(self, callback: Observer) -> None:
        self._observers["terminal"].append(callback)

    @property
    def recipes_received(self) -> int:
        return len(self.recipes)

    @property
    def progress(self) -> float:
        """Fraction of expected recipes received, 0.0 to 1.0."""
        return min(self.recipes_received / self.expected_total, 1.0)

    @property
    def progress_label(self) -> str:
        return f"{self.recipes_received} of {self.expected_total} ready"

    @property
    def is_finished(self) -> bool:
        return self.outcome is not GenerationOutcome.PENDING

    def apply(self, event: AnyEvent) -> bool:
        """Apply one event. Returns True once the stream has reached a terminal event."""
        if isinstance(event, SuggestionsEvent):
            self.suggestions = event.data
            for callback in self._observers["suggestions"]:
                callback(event.data)
            return False

        if isinstance(event, RecipeEvent):
            self.recipes.append(event.data)
            logger.debug(f"Displaying recipe {self.recipes_received}: {event.data.name}")
            for callback in self._observers["recipe"]:
                callback(event.data, self)
            return False

        if isinstance(event, CompleteEvent):
            self._finish(GenerationOutcome.COMPLETE)
        elif isinstance(event, ErrorEvent):
            self.error = event.message
            self._finish(GenerationOutcome.ERROR)
        return True

    def end_of_stream(self) -> None:
        """Mark the stream closed; without a terminal event the result is INCOMPLETE."""
        if not self.is_finished:
            self._finish(GenerationOutcome.INCOMPLETE)

    def _finish(self, outcome: GenerationOutcome) -> None:
        self.outcome = outcome
        for callback in self._observers["terminal"]:
            callback(self)


class StreamConsumer:
    """Reads an event stream and keeps a RecipeStreamState up to date."""

    def __init__(self, state: Optional[RecipeStreamState] = None) -> None:
        self.state = state or RecipeStreamState()

    async def events(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[AnyEvent]:
        """Decode events lazily from a byte stream, applying each to the state.

        Every call starts from a fresh decoder and a reset state, so a retry can
        reuse the consumer; a stream cannot be resumed midway.

        Yields:
            Decoded events in arrival order; the last one is terminal if the
            server sent one.

        Raises:
            TransportError: If the bytes cannot be decoded as UTF-8.
        """
        decoder = FrameDecoder()
        self.state.reset()

        async for chunk in chunks:
            for event in decoder.feed(chunk):
                if self._handle(event):
                    yield event
                if self.state.is_finished:
                    return

        for event in decoder.finish():
            if self._handle(event):
                yield event
            if self.state.is_finished:
                return

        self.state.end_of_stream()
        if self.state.outcome is GenerationOutcome.INCOMPLETE:
            logger.warning(
                f"Stream ended without completion signal ({self.state.progress_label})"
            )

    def _handle(self, event: Optional[AnyEvent]) -> bool:
        if event is None:
            self.state.skipped_frames += 1
            return False
        if self.state.is_finished:
            logger.warning(f"Ignoring {event.type} event received after stream end")
            return False
        self.state.apply(event)
        return True

    async def consume(self, chunks: AsyncIterable[bytes]) -> RecipeStreamState:
        """Drain the stream and return the final state."""
        async for _ in self.events(chunks):
            pass
        return self.state


class RecipeStreamClient:
    """HTTP client for the generation endpoint."""

    def __init__(
        self,
        base_url: str,
        session: Optional[aiohttp.ClientSession] = None,
        path: str = "/generate-recipes",
        timeout_seconds: Optional[float] = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Service root, e.g. http://localhost:7777.
            session: Shared aiohttp session. A private one is opened per call when None.
            path: Generation endpoint path.
            timeout_seconds: Bound on the whole request including the stream read.
                None means unbounded.
        """
        self.url = base_url.rstrip("/") + path
        self._session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def generate(
        self,
        request: GenerationRequest,
        state: Optional[RecipeStreamState] = None,
    ) -> RecipeStreamState:
        """POST the request and consume the streamed response.

        Raises:
            TransportError: On connection failures, a timeout or a non-success status.
        """
        consumer = StreamConsumer(state)
        session = self._session or aiohttp.ClientSession(timeout=self.timeout)
        try:
            async with session.post(self.url, json=request.to_wire(), timeout=self.timeout) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise TransportError(
                        body or f"Failed to connect to recipe generation service ({response.status})"
                    )
                return await consumer.consume(response.content.iter_any())
        except aiohttp.ClientError as e:
            raise TransportError(f"Stream read failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise TransportError(f"Stream read timed out after {self.timeout.total}s") from e
        finally:
            if self._session is None:
                await session.close()
