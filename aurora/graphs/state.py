"""State definitions for the chat turn graph."""

from pydantic import BaseModel, Field

from aurora.models.llm import ChatMessage, Completion, ToolCall, ToolResult
from aurora.models.toolkits import ToolDescriptor


class TurnState(BaseModel):
    """State passed through every node of one chat turn.

    Nodes return partial updates; ``messages`` is replaced wholesale so the
    sequence stays exactly as sent to the provider.
    """

    # Inputs
    messages: list[ChatMessage]
    requester_id: str
    explicit_toolkits: list[str] = Field(default_factory=list)

    # Resolved tooling
    available_toolkits: list[str] = Field(default_factory=list)
    tools: list[ToolDescriptor] = Field(default_factory=list)

    # Completion and tool work
    completion: Completion | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)
    tool_results: list[ToolResult] = Field(default_factory=list)
    provider_calls: int = 0

    # Outputs
    model: str | None = None
    content: str | None = None
    error: str | None = None
