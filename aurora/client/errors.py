"""Client-side error classification."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import httpx

RATE_LIMIT_PATTERNS = ("rate limit", "tokens per minute", "TPM")


class ChatErrorKind(StrEnum):
    TIMEOUT = "timeout"
    SESSION_EXPIRED = "session_expired"
    NETWORK = "network"
    RATE_LIMIT = "rate_limit"
    GENERIC = "generic"


USER_MESSAGES = {
    ChatErrorKind.TIMEOUT: "The request took too long. Please try again.",
    ChatErrorKind.SESSION_EXPIRED: "Your session has expired. Please sign in again.",
    ChatErrorKind.NETWORK: "Connection problem. Check your network.",
    ChatErrorKind.RATE_LIMIT: "Request limit reached. Try again in a minute or shorten your message.",
    ChatErrorKind.GENERIC: "Something went wrong while sending your message.",
}


class SessionExpiredError(Exception):
    """No usable session token on the client."""


class ChatRequestError(Exception):
    """The server answered with an error status."""

    def __init__(self, message: str, status_code: int, payload: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ChatRequestError":
        """Build from a read error response; the body's ``error`` field wins over the reason phrase."""
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = None
        message = (payload or {}).get("error") or response.reason_phrase or f"HTTP {response.status_code}"
        return cls(message, response.status_code, payload)


@dataclass
class ChatError:
    """A classified failure with the message to show the user."""

    kind: ChatErrorKind
    message: str
    detail: str = ""


def is_rate_limit_message(text: str) -> bool:
    return any(pattern in text for pattern in RATE_LIMIT_PATTERNS)


def classify_error(error: BaseException) -> ChatError:
    """Map a send failure to one of the user-facing error kinds.

    Upstream error text is shown close to verbatim, except rate-limit wording
    which is replaced by a friendlier message.
    """
    detail = str(error)

    if isinstance(error, TimeoutError | httpx.TimeoutException):
        return ChatError(ChatErrorKind.TIMEOUT, USER_MESSAGES[ChatErrorKind.TIMEOUT], detail)

    if isinstance(error, SessionExpiredError):
        return ChatError(ChatErrorKind.SESSION_EXPIRED, USER_MESSAGES[ChatErrorKind.SESSION_EXPIRED], detail)

    if isinstance(error, ChatRequestError):
        if error.status_code == 401:
            return ChatError(ChatErrorKind.SESSION_EXPIRED, USER_MESSAGES[ChatErrorKind.SESSION_EXPIRED], detail)
        if error.status_code == 429 or is_rate_limit_message(error.message):
            return ChatError(ChatErrorKind.RATE_LIMIT, USER_MESSAGES[ChatErrorKind.RATE_LIMIT], detail)
        return ChatError(ChatErrorKind.GENERIC, error.message, detail)

    if isinstance(error, httpx.TransportError):
        return ChatError(ChatErrorKind.NETWORK, USER_MESSAGES[ChatErrorKind.NETWORK], detail)

    return ChatError(ChatErrorKind.GENERIC, detail or USER_MESSAGES[ChatErrorKind.GENERIC], detail)
