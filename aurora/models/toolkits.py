"""Toolkit and connection models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ConnectionStatus(StrEnum):
    """Lifecycle status of a toolkit connection."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    PENDING = "PENDING"
    INITIATED = "INITIATED"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"


class ToolkitDescriptor(BaseModel):
    """A configured group of external tools gated by one connection."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    toolkit: str = Field(..., min_length=1, description="Toolkit slug, e.g. GITHUB")
    description: str = ""
    requires_auth: bool = Field(default=True, alias="requiresAuth")
    allowed_tools: list[str] = Field(default_factory=list, alias="allowedTools")
    enabled: bool = True

    @property
    def slug_key(self) -> str:
        """Case-insensitive join key against connections."""
        return self.toolkit.upper()


class Connection(BaseModel):
    """A user's authorization record for a toolkit."""

    id: str
    toolkit: str
    status: ConnectionStatus
    user_id: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == ConnectionStatus.ACTIVE


class ToolDescriptor(BaseModel):
    """A tool definition as offered to the model."""

    name: str
    description: str = ""
    parameters: dict = Field(default_factory=lambda: {"type": "object", "properties": {}})
    toolkit: str | None = None

    def to_openai_tool(self) -> dict:
        """OpenAI-compatible function tool definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolExecutionResponse(BaseModel):
    """Raw response of the tool execution backend."""

    model_config = ConfigDict(extra="allow")

    data: object | None = None
    error: str | None = None
    successful: bool | None = None


class ToolkitStatus(BaseModel):
    """A configured toolkit as seen by one user."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    toolkit: str
    description: str = ""
    requires_auth: bool = Field(alias="requiresAuth")
    enabled: bool = True
    is_connected: bool = Field(alias="isConnected")
    connection_id: str | None = Field(default=None, alias="connectionId")
    allowed_tools: list[str] = Field(default_factory=list, alias="allowedTools")
