"""Client-side chat controller.

Holds the local conversation state for one chat view: optimistic insertion of
the user's message, request dispatch with a timeout, incremental decoding of
the streamed answer, error classification and recovery of the failed message
so it can be resubmitted.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

import httpx
from cuid2 import cuid_wrapper

from aurora.client.errors import ChatError, ChatErrorKind, ChatRequestError, SessionExpiredError, classify_error
from aurora.models.llm import ToolCall, ToolResult
from aurora.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()

TokenProvider = Callable[[], Awaitable[str | None]]
PersistCallback = Callable[[str, str], Awaitable[None]]
Subscriber = Callable[["ChatState"], None]


@dataclass
class Attachment:
    """A file attached to a message; images carry a data URL as content."""

    name: str
    content_type: str
    content: str
    size: int = 0

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")

    def format_for_model(self) -> str:
        label = "Image" if self.is_image else "PDF" if self.content_type == "application/pdf" else "File"
        return f"[{label}: {self.name}]\n{self.content}"


@dataclass
class LocalMessage:
    id: str
    role: Literal["user", "assistant"]
    content: str
    attachments: list[Attachment] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class FailedMessage:
    """What the user sent in a failed turn, for pre-filling the input."""

    content: str
    attachments: list[Attachment] = field(default_factory=list)


@dataclass
class ChatState:
    messages: list[LocalMessage] = field(default_factory=list)
    is_loading: bool = False
    streaming_partial: str = ""
    last_failed_message: FailedMessage | None = None
    last_error: ChatError | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)
    available_toolkits: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ControllerConfig:
    timeout: float = 60.0
    history_limit: int = 20


def build_api_content(content: str, attachments: Sequence[Attachment]) -> str | list[dict[str, Any]]:
    """Content of the outgoing user message.

    With images, the text and images become content parts. Other attachments
    are prepended to the text.
    """
    if any(attachment.is_image for attachment in attachments):
        parts: list[dict[str, Any]] = []
        if content.strip():
            parts.append({"type": "text", "text": content})
        for attachment in attachments:
            if attachment.is_image and attachment.content:
                parts.append({"type": "image_url", "image_url": {"url": attachment.content}})
        return parts

    if attachments:
        files_content = "\n\n".join(attachment.format_for_model() for attachment in attachments)
        return f"{files_content}\n\n{content}"
    return content


class ClientChatController:
    """State machine behind one chat view.

    One turn at a time: callers are expected to disable input while
    ``state.is_loading`` is set.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        token_provider: TokenProvider,
        *,
        config: ControllerConfig | None = None,
        on_success: PersistCallback | None = None,
        enabled_toolkits: Sequence[str] | None = None,
    ):
        """Initialize controller.

        Args:
            http: Client with ``base_url`` pointing at the chat service
            token_provider: Returns the current session token, or None if signed out
            config: Timeout and history settings
            on_success: Called with (user text, assistant text) after each successful turn
            enabled_toolkits: When non-empty, turns go through the tool-calling endpoint
        """
        self.http = http
        self.token_provider = token_provider
        self.config = config or ControllerConfig()
        self.on_success = on_success
        self.enabled_toolkits = list(enabled_toolkits or [])
        self.state = ChatState()
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a state listener. Returns a function that unregisters it."""
        self._subscribers.append(subscriber)
        return lambda: self._subscribers.remove(subscriber)

    def _notify(self) -> None:
        for subscriber in list(self._subscribers):
            subscriber(self.state)

    async def send_message(self, content: str, attachments: Sequence[Attachment] | None = None) -> None:
        """Send one user turn and update state as it progresses.

        Never raises for request failures: they end up in ``state.last_error``
        and ``state.last_failed_message``.
        """
        attachments = list(attachments or [])
        if not content.strip() and not attachments:
            return

        history = self.state.messages[-self.config.history_limit :]
        temp_id = f"temp-user-{cuid()}"

        self.state.messages.append(LocalMessage(id=temp_id, role="user", content=content, attachments=attachments))
        self.state.is_loading = True
        self.state.streaming_partial = ""
        self.state.last_error = None
        self.state.tool_calls = []
        self.state.tool_results = []
        self._notify()

        api_messages = [{"role": message.role, "content": message.content} for message in history]
        api_messages.append({"role": "user", "content": build_api_content(content, attachments)})

        try:
            token = await self.token_provider()
            if not token:
                raise SessionExpiredError("Session expired. Please sign in again.")

            async with asyncio.timeout(self.config.timeout):
                if self.enabled_toolkits:
                    assistant_text = await self._send_with_tools(api_messages, token)
                else:
                    assistant_text = await self._send_streaming(api_messages, token)
        except Exception as e:
            self._fail(temp_id, content, attachments, e)
            return

        assistant = LocalMessage(id=f"temp-assistant-{cuid()}", role="assistant", content=assistant_text)
        self.state.messages.append(assistant)
        self.state.is_loading = False
        self.state.streaming_partial = ""
        self.state.last_failed_message = None
        self._notify()

        await self._persist(content, assistant_text)

    async def retry_last_failed(self) -> None:
        """Resend the last failed message, if any."""
        failed = self.state.last_failed_message
        if failed is None:
            return
        await self.send_message(failed.content, failed.attachments)

    def _auth_headers(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    async def _send_streaming(self, api_messages: list[dict[str, Any]], token: str) -> str:
        async with self.http.stream(
            "POST", "/chat", json={"messages": api_messages}, headers=self._auth_headers(token)
        ) as response:
            if response.is_error:
                await response.aread()
                raise ChatRequestError.from_response(response)

            self.state.is_loading = False
            full_response = ""
            async for chunk in response.aiter_text():
                if not chunk:
                    continue
                full_response += chunk
                self.state.streaming_partial = full_response
                self._notify()
            return full_response

    async def _send_with_tools(self, api_messages: list[dict[str, Any]], token: str) -> str:
        response = await self.http.post(
            "/chat-with-tools",
            json={"messages": api_messages, "enabledToolkits": self.enabled_toolkits},
            headers=self._auth_headers(token),
        )
        if response.is_error:
            error = ChatRequestError.from_response(response)
            # Tool work done before a failed final pass is still shown
            self._store_tool_work(error.payload)
            raise error

        data = response.json()
        self._store_tool_work(data)
        return data.get("content") or ""

    def _store_tool_work(self, data: dict[str, Any]) -> None:
        self.state.tool_calls = [ToolCall.model_validate(item) for item in data.get("toolCalls") or []]
        self.state.tool_results = [ToolResult.model_validate(item) for item in data.get("toolResults") or []]
        self.state.available_toolkits = list(data.get("availableToolkits") or self.state.available_toolkits)

    def _fail(self, temp_id: str, content: str, attachments: list[Attachment], error: Exception) -> None:
        chat_error = classify_error(error)
        logger.error(f"Chat error ({chat_error.kind}): {chat_error.detail}")

        self.state.messages = [message for message in self.state.messages if message.id != temp_id]
        self.state.last_failed_message = FailedMessage(content=content, attachments=attachments)
        self.state.last_error = chat_error
        self.state.is_loading = False
        self.state.streaming_partial = ""
        self._notify()

    async def _persist(self, user_text: str, assistant_text: str) -> None:
        if self.on_success is None:
            return
        try:
            await self.on_success(user_text, assistant_text)
        except Exception as e:
            logger.error(f"Failed to save exchange: {e}")
            self.state.last_error = ChatError(ChatErrorKind.GENERIC, "Your message could not be saved.", str(e))
            self._notify()


class ChatsApiPersistence:
    """Persistence callback that saves exchanges through the chats API.

    The chat is created by the server on the first saved exchange; its id is
    remembered for the following ones.
    """

    def __init__(self, http: httpx.AsyncClient, token_provider: TokenProvider, chat_id: str | None = None):
        self.http = http
        self.token_provider = token_provider
        self.chat_id = chat_id
        self.title: str | None = None

    async def __call__(self, user_content: str, assistant_content: str) -> None:
        token = await self.token_provider()
        if not token:
            raise SessionExpiredError("Session expired. Please sign in again.")

        response = await self.http.post(
            "/chats/exchange",
            json={"chatId": self.chat_id, "userContent": user_content, "assistantContent": assistant_content},
            headers={"Authorization": f"Bearer {token}"},
        )
        if response.is_error:
            raise ChatRequestError.from_response(response)

        data = response.json()
        self.chat_id = data["chatId"]
        self.title = data["title"]
