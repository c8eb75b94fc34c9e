"""Wire framing for the recipe event stream.

Each event is one ``data: <json>`` line followed by a blank line. Payloads:

    {"type": "suggestions", "data": "..."}
    {"type": "recipe", "data": {...RecipeRecord...}}
    {"type": "complete"}
    {"error": "..."}

Error events keep the legacy shape without a ``type`` field. The decoder also
accepts the normalized ``{"type": "error", "message": "..."}`` form.
"""

import json
from typing import Union

from pydantic import TypeAdapter

from src.models.models import CompleteEvent, ErrorEvent, RecipeEvent, StreamEvent, SuggestionsEvent


FRAME_PREFIX = "data: "
FRAME_SEPARATOR = "\n\n"
MEDIA_TYPE = "text/event-stream"

AnyEvent = Union[SuggestionsEvent, RecipeEvent, CompleteEvent, ErrorEvent]

_event_adapter = TypeAdapter(StreamEvent)


def event_payload(event: AnyEvent) -> dict:
    """JSON payload for an event, in wire shape."""
    if isinstance(event, ErrorEvent):
        return {"error": event.message}
    if isinstance(event, RecipeEvent):
        return {"type": "recipe", "data": event.data.to_wire()}
    return event.model_dump(mode="json")


def encode_event(event: AnyEvent) -> str:
    """Encode one event as a complete wire frame."""
    return f"{FRAME_PREFIX}{json.dumps(event_payload(event))}{FRAME_SEPARATOR}"


def decode_payload(payload: dict) -> AnyEvent:
    """Turn a decoded JSON payload into an event.

    Raises:
        ValueError: If the payload is not a known event shape.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Event payload must be an object, got {type(payload).__name__}")
    if "error" in payload and payload.get("type") in (None, "error"):
        return ErrorEvent(message=str(payload["error"]))
    return _event_adapter.validate_python(payload)


def decode_frame(block: str) -> AnyEvent:
    """Decode one frame (without its trailing blank line).

    Raises:
        ValueError: If the block lacks the ``data: `` prefix or holds invalid JSON
            or an unknown event shape. pydantic's ValidationError and
            json.JSONDecodeError are both ValueError subclasses.
    """
    block = block.strip("\r\n")
    if not block.startswith(FRAME_PREFIX):
        raise ValueError(f"Frame does not start with {FRAME_PREFIX!r}")
    return decode_payload(json.loads(block[len(FRAME_PREFIX):]))
