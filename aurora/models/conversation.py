"""Request and response models for the chat endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from aurora.models.llm import ChatMessage, ToolCall, ToolResult
from aurora.models.toolkits import ToolkitStatus


class ChatRequest(BaseModel):
    """Request model for the streaming chat endpoint."""

    messages: list[ChatMessage]


class ChatWithToolsRequest(BaseModel):
    """Request model for the tool-calling chat endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage]
    enabled_toolkits: list[str] | None = Field(default=None, alias="enabledToolkits")


class ChatWithToolsResponse(BaseModel):
    """Response model for the tool-calling chat endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    content: str
    model: str | None = None
    tool_calls: list[ToolCall] | None = Field(default=None, alias="toolCalls")
    tool_results: list[ToolResult] | None = Field(default=None, alias="toolResults")
    available_toolkits: list[str] = Field(default_factory=list, alias="availableToolkits")


class ErrorResponse(BaseModel):
    """Error body; a failed second pass still reports executed tool work."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    tool_calls: list[ToolCall] | None = Field(default=None, alias="toolCalls")
    tool_results: list[ToolResult] | None = Field(default=None, alias="toolResults")
    available_toolkits: list[str] | None = Field(default=None, alias="availableToolkits")


class TitleRequest(BaseModel):
    message: str = Field(..., min_length=1)


class TitleResponse(BaseModel):
    title: str


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
    providers: list[str] = Field(default_factory=list)


class ToolkitsResponse(BaseModel):
    """Configured toolkits with the caller's connection status."""

    model_config = ConfigDict(populate_by_name=True)

    toolkits: list[ToolkitStatus]
    connected_toolkit_slugs: list[str] = Field(alias="connectedToolkitSlugs")
    total_configured: int = Field(alias="totalConfigured")
    total_connected: int = Field(alias="totalConnected")
