"""Service configuration.

Everything here is read once at startup and treated as read-only afterwards.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field

from aurora.models.toolkits import ToolkitDescriptor

DEFAULT_TOOLKITS_FILE = Path(__file__).parent / "toolkits.json"


@dataclass(frozen=True)
class ProviderConfig:
    """Connection settings for one OpenAI-compatible provider."""

    name: str
    base_url: str
    api_key_env: str
    timeout: float = 30.0
    requests_per_minute: int = 30


@dataclass(frozen=True)
class ModelCandidate:
    """One entry of a model fallback chain."""

    provider: str
    model: str
    vision: bool = False

    def __str__(self) -> str:
        return f"{self.provider}:{self.model}"


@dataclass(frozen=True)
class CompletionParams:
    """Sampling parameters sent with each completion request."""

    temperature: float = 0.7
    max_tokens: int = 2048
    top_p: float = 1.0


CHAT_PARAMS = CompletionParams(temperature=0.7, max_tokens=2048, top_p=1.0)
TITLE_PARAMS = CompletionParams(temperature=0.3, max_tokens=30, top_p=1.0)

PROVIDERS: tuple[ProviderConfig, ...] = (
    ProviderConfig(name="groq", base_url="https://api.groq.com/openai/v1", api_key_env="GROQ_API_KEY"),
    ProviderConfig(
        name="openrouter",
        base_url="https://openrouter.ai/api/v1",
        api_key_env="OPENROUTER_API_KEY",
        timeout=45.0,
        requests_per_minute=20,
    ),
)

CHAT_CANDIDATES: tuple[ModelCandidate, ...] = (
    ModelCandidate("groq", "openai/gpt-oss-120b"),
    ModelCandidate("groq", "qwen/qwen3-32b"),
    ModelCandidate("groq", "openai/gpt-oss-20b"),
    ModelCandidate("openrouter", "tngtech/deepseek-r1t2-chimera:free"),
    ModelCandidate("groq", "meta-llama/llama-4-scout-17b-16e-instruct", vision=True),
)

TITLE_CANDIDATES: tuple[ModelCandidate, ...] = (
    ModelCandidate("groq", "llama-3.3-70b-versatile"),
    ModelCandidate("groq", "llama-3.1-8b-instant"),
    ModelCandidate("groq", "gemma2-9b-it"),
)


@dataclass(frozen=True)
class ContextConfig:
    """Limits applied to the inbound conversation history."""

    max_messages: int = 20
    keep_initial_messages: int = 2
    max_context_tokens: int = 10_000
    chars_per_token: int = 4


class ToolkitsFile(BaseModel):
    """Shape of the toolkits JSON file."""

    toolkits: list[ToolkitDescriptor] = Field(default_factory=list)


def load_toolkits(path: str | Path | None = None) -> list[ToolkitDescriptor]:
    """Load toolkit descriptors from a JSON file.

    Args:
        path: File to read; defaults to AURORA_TOOLKITS_FILE or the bundled file

    Returns:
        Toolkits in declared order
    """
    toolkits_path = Path(path or os.getenv("AURORA_TOOLKITS_FILE") or DEFAULT_TOOLKITS_FILE)
    with toolkits_path.open(encoding="utf-8") as file:
        data = json.load(file)
    return ToolkitsFile.model_validate(data).toolkits


@dataclass
class Settings:
    """Environment-derived settings."""

    provider_keys: dict[str, str] = field(default_factory=dict)
    composio_api_key: str | None = None
    composio_base_url: str = "https://backend.composio.dev"
    appwrite_endpoint: str | None = None
    appwrite_project_id: str | None = None
    toolkits_file: str | None = None
    dev_token: str | None = None
    dev_user_id: str = "dev-user"

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from environment variables."""
        provider_keys = {}
        for provider in PROVIDERS:
            api_key = os.getenv(provider.api_key_env)
            if api_key:
                provider_keys[provider.name] = api_key

        return cls(
            provider_keys=provider_keys,
            composio_api_key=os.getenv("COMPOSIO_API_KEY") or None,
            composio_base_url=os.getenv("COMPOSIO_BASE_URL", "https://backend.composio.dev"),
            appwrite_endpoint=os.getenv("APPWRITE_ENDPOINT") or None,
            appwrite_project_id=os.getenv("APPWRITE_PROJECT_ID") or None,
            toolkits_file=os.getenv("AURORA_TOOLKITS_FILE") or None,
            dev_token=os.getenv("AURORA_DEV_TOKEN") or None,
            dev_user_id=os.getenv("AURORA_DEV_USER_ID") or "dev-user",
        )
