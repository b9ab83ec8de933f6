"""Error taxonomy for the chat service.

Each error maps to exactly one HTTP status at the API layer:

- InvalidRequestError: 400, never retried
- UnauthenticatedError: 401, never retried
- ChatNotFoundError: 404
- ProviderError: one candidate failed; absorbed by the fallback chain
- ProviderExhaustedError: 500, every model candidate failed
- StreamInterruptedError: the outbound stream is aborted mid-flight

Tool-level errors (ToolParseError, ToolExecutionError) never cross the tool
executor boundary; they are recorded as data inside the tool result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aurora.models.llm import ToolCall, ToolResult


class AuroraError(Exception):
    """Base error for the chat service."""

    status_code: int = 500


class InvalidRequestError(AuroraError):
    """Malformed or missing request data."""

    status_code = 400


class UnauthenticatedError(AuroraError):
    """No valid session for the caller."""

    status_code = 401


class ChatNotFoundError(AuroraError):
    """Chat does not exist or belongs to another user."""

    status_code = 404


class ProviderError(AuroraError):
    """A single model candidate failed (rate limited locally or malformed response)."""

    def __init__(self, message: str, provider: str, model: str | None = None):
        super().__init__(message)
        self.provider = provider
        self.model = model


class ProviderExhaustedError(AuroraError):
    """All model candidates failed.

    Tool work already executed during the turn is kept so it can still be
    reported to the caller.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        tool_calls: list[ToolCall] | None = None,
        tool_results: list[ToolResult] | None = None,
        available_toolkits: list[str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.tool_calls = tool_calls or []
        self.tool_results = tool_results or []
        self.available_toolkits = available_toolkits or []


class StreamInterruptedError(AuroraError):
    """Upstream token stream failed after the response started."""

    def __init__(self, message: str, provider: str | None = None, model: str | None = None):
        super().__init__(message)
        self.provider = provider
        self.model = model


class ToolError(AuroraError):
    """Base for errors scoped to a single tool call."""

    def __init__(self, message: str, tool_name: str):
        super().__init__(message)
        self.tool_name = tool_name


class ToolParseError(ToolError):
    """Tool arguments are not a JSON object."""


class ToolExecutionError(ToolError):
    """Tool backend rejected or failed the call."""
