"""Error taxonomy for recipe generation, streaming and storage."""

from typing import Optional


class RecipeServiceError(Exception):
    """Base class for all service errors."""


class ValidationError(RecipeServiceError):
    """Bad or missing input, raised before any upstream call."""


class UpstreamError(RecipeServiceError):
    """The completion API answered with a non-success status or failed to answer."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class UpstreamTimeoutError(UpstreamError):
    """The completion API did not answer within UPSTREAM_TIMEOUT_SECONDS."""


class ParseError(RecipeServiceError):
    """Model output is not valid JSON after stripping a code fence."""


class SchemaError(RecipeServiceError):
    """Model output parsed but does not have the expected recipe structure."""


class TransportError(RecipeServiceError):
    """The client could not read or decode the event stream."""
