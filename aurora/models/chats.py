"""Persisted chat models and the chats API shapes."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CHAT_TITLE = "New conversation"


@dataclass
class Chat:
    """A conversation owned by exactly one user."""

    id: str
    user_id: str
    title: str = DEFAULT_CHAT_TITLE
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def touch(self) -> None:
        self.updated_at = datetime.now(UTC)


@dataclass
class StoredMessage:
    """A persisted message belonging to exactly one chat."""

    id: str
    chat_id: str
    role: Literal["user", "assistant"]
    content: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class ChatSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_chat(cls, chat: Chat) -> "ChatSummary":
        return cls(id=chat.id, title=chat.title, created_at=chat.created_at, updated_at=chat.updated_at)


class StoredMessageOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    role: str
    content: str
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_message(cls, message: StoredMessage) -> "StoredMessageOut":
        return cls(id=message.id, role=message.role, content=message.content, created_at=message.created_at)


class ExchangeRequest(BaseModel):
    """A finished (user, assistant) exchange to persist."""

    model_config = ConfigDict(populate_by_name=True)

    chat_id: str | None = Field(default=None, alias="chatId")
    user_content: str = Field(..., alias="userContent")
    assistant_content: str = Field(..., alias="assistantContent")


class ExchangeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: str = Field(alias="chatId")
    title: str
