"""LLM-related data models and types (provider-agnostic)."""

import json
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from aurora.config import ModelCandidate


# Content part types
class TextPart(BaseModel):
    """Text content part."""

    type: Literal["text"] = "text"
    text: str


class ImageURL(BaseModel):
    url: str


class ImagePart(BaseModel):
    """Image content part, referenced by URL or data URI."""

    type: Literal["image_url"] = "image_url"
    image_url: ImageURL


ContentPart = Annotated[TextPart | ImagePart, Field(discriminator="type")]


class FunctionCall(BaseModel):
    name: str
    arguments: str = "{}"


class ToolCall(BaseModel):
    """A model-emitted request to run a tool. Arguments stay a JSON string."""

    id: str
    type: Literal["function"] = "function"
    function: FunctionCall

    @property
    def function_name(self) -> str:
        return self.function.name

    @property
    def arguments_json(self) -> str:
        return self.function.arguments


class ChatMessage(BaseModel):
    """A message in the OpenAI-compatible chat format."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str | list[ContentPart] = ""
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    @property
    def has_image(self) -> bool:
        if isinstance(self.content, str):
            return False
        return any(isinstance(part, ImagePart) for part in self.content)

    @property
    def text(self) -> str:
        """Concatenated text of the message, ignoring images."""
        if isinstance(self.content, str):
            return self.content
        return "".join(part.text for part in self.content if isinstance(part, TextPart))

    def to_provider_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def has_images(messages: list[ChatMessage]) -> bool:
    """Check whether any message carries an image part."""
    return any(message.has_image for message in messages)


class ToolErrorKind(StrEnum):
    PARSE = "parse"
    UNKNOWN_TOOL = "unknown_tool"
    EXECUTION = "execution"


class ToolSuccess(BaseModel):
    kind: Literal["ok"] = "ok"
    value: Any = None


class ToolFailure(BaseModel):
    kind: Literal["error"] = "error"
    error: ToolErrorKind
    message: str


ToolOutcome = Annotated[ToolSuccess | ToolFailure, Field(discriminator="kind")]


class ToolResult(BaseModel):
    """Result of one tool call, always re-insertable as a tool message."""

    tool_call_id: str
    role: Literal["tool"] = "tool"
    name: str
    content: str

    @classmethod
    def from_outcome(cls, tool_call_id: str, name: str, outcome: ToolSuccess | ToolFailure) -> "ToolResult":
        if isinstance(outcome, ToolFailure):
            payload: Any = {"error": outcome.message}
        else:
            payload = outcome.value
        return cls(tool_call_id=tool_call_id, name=name, content=json.dumps(payload, default=str))

    @property
    def is_error(self) -> bool:
        try:
            payload = json.loads(self.content)
        except ValueError:
            return False
        return isinstance(payload, dict) and set(payload) == {"error"}

    def to_message(self) -> ChatMessage:
        return ChatMessage(role="tool", content=self.content, tool_call_id=self.tool_call_id, name=self.name)


class Completion(BaseModel):
    """Normalized non-streaming completion."""

    content: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)
    model: str
    provider: str
    finish_reason: str | None = None

    @property
    def text(self) -> str:
        return self.content or ""

    def to_assistant_message(self) -> ChatMessage:
        return ChatMessage(role="assistant", content=self.text, tool_calls=self.tool_calls or None)


@dataclass
class CompletionResult:
    """Outcome of a completion request across the fallback chain."""

    success: bool
    completion: Completion | None = None
    provider_used: ModelCandidate | None = None
    error: str | None = None


@dataclass
class StreamResult:
    """Outcome of a streaming request across the fallback chain."""

    success: bool
    chunks: AsyncIterator[str] | None = None
    provider_used: ModelCandidate | None = None
    error: str | None = None


class ChatTurnResult(BaseModel):
    """Final result of one orchestrated chat turn."""

    content: str
    model: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)
    tool_results: list[ToolResult] = Field(default_factory=list)
    available_toolkits: list[str] = Field(default_factory=list)
