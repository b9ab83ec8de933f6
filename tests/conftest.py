"""Shared fixtures and fakes for the test suite."""

import asyncio
from typing import Any

import pytest

from aurora.models.llm import ChatMessage, Completion, FunctionCall, ToolCall
from aurora.models.session import UserIdentity
from aurora.models.toolkits import (
    Connection,
    ConnectionStatus,
    ToolDescriptor,
    ToolExecutionResponse,
    ToolkitDescriptor,
)
from aurora.services.container import assemble_services
from aurora.services.context import ContextOptimizer
from aurora.services.session_manager import InMemorySessionManager
from aurora.services.toolkits import StaticToolkitCatalog


class ScriptedProvider:
    """Provider backend that replays scripted completions and records calls."""

    def __init__(
        self,
        name: str = "groq",
        completions: list[Completion | Exception] | None = None,
        failing_models: set[str] | None = None,
        chunks: list[str] | None = None,
        stream_error: Exception | None = None,
    ):
        self.name = name
        self.completions = list(completions or [])
        self.failing_models = failing_models or set()
        self.chunks = chunks or []
        self.stream_error = stream_error
        self.calls: list[dict[str, Any]] = []

    async def create_completion(self, model, messages, params, tools=None):
        self.calls.append({"model": model, "messages": list(messages), "params": params, "tools": tools})
        if model in self.failing_models:
            raise RuntimeError(f"{model} is unavailable")
        if not self.completions:
            return Completion(content="ok", model=model, provider=self.name)
        item = self.completions.pop(0)
        if isinstance(item, Exception):
            raise item
        return item.model_copy(update={"model": model, "provider": self.name})

    async def stream_completion(self, model, messages, params):
        self.calls.append({"model": model, "messages": list(messages), "params": params, "tools": None})
        if model in self.failing_models:
            raise RuntimeError(f"{model} is unavailable")
        return self._iter_chunks()

    async def _iter_chunks(self):
        for chunk in self.chunks:
            yield chunk
        if self.stream_error:
            raise self.stream_error

    @property
    def models_called(self) -> list[str]:
        return [call["model"] for call in self.calls]


class FakeToolBackend:
    """In-memory tool backend with per-tool delays and failures."""

    def __init__(
        self,
        connections: list[Connection] | None = None,
        tools: dict[str, list[ToolDescriptor]] | None = None,
        delays: dict[str, float] | None = None,
        failing_tools: set[str] | None = None,
        connections_error: Exception | None = None,
    ):
        self.connections = connections or []
        self.tools = tools or {}
        self.delays = delays or {}
        self.failing_tools = failing_tools or set()
        self.connections_error = connections_error
        self.executed: list[dict[str, Any]] = []
        self.completion_order: list[str] = []
        self.connection_lookups = 0

    async def list_connections(self, user_id: str) -> list[Connection]:
        self.connection_lookups += 1
        if self.connections_error:
            raise self.connections_error
        return [connection for connection in self.connections if connection.user_id == user_id]

    async def list_tools(self, toolkit_slug: str) -> list[ToolDescriptor]:
        return list(self.tools.get(toolkit_slug.upper(), []))

    async def execute_tool(self, tool_name: str, arguments: dict[str, Any], user_id: str) -> ToolExecutionResponse:
        self.executed.append({"tool": tool_name, "arguments": arguments, "user_id": user_id})
        await asyncio.sleep(self.delays.get(tool_name, 0))
        if tool_name in self.failing_tools:
            raise RuntimeError(f"{tool_name} exploded")
        self.completion_order.append(tool_name)
        return ToolExecutionResponse(data={"tool": tool_name, "arguments": arguments}, successful=True)


def make_tool_call(call_id: str, name: str, arguments: str = "{}") -> ToolCall:
    return ToolCall(id=call_id, function=FunctionCall(name=name, arguments=arguments))


@pytest.fixture
def toolkits() -> list[ToolkitDescriptor]:
    """Two no-auth toolkits, one auth toolkit with an allow-list, one disabled."""
    return [
        ToolkitDescriptor(id="hackernews", name="Hacker News", toolkit="HACKERNEWS", requires_auth=False),
        ToolkitDescriptor(
            id="github",
            name="GitHub",
            toolkit="GITHUB",
            requires_auth=True,
            allowed_tools=["GITHUB_CREATE_AN_ISSUE", "GITHUB_LIST_REPOS"],
        ),
        ToolkitDescriptor(id="weathermap", name="Weather", toolkit="WEATHERMAP", requires_auth=False),
        ToolkitDescriptor(id="notion", name="Notion", toolkit="NOTION", requires_auth=False, enabled=False),
    ]


@pytest.fixture
def catalog(toolkits) -> StaticToolkitCatalog:
    return StaticToolkitCatalog(toolkits)


@pytest.fixture
def tool_backend() -> FakeToolBackend:
    return FakeToolBackend(
        tools={
            "HACKERNEWS": [
                ToolDescriptor(name="HACKERNEWS_GET_TOP_STORIES", description="Top stories", toolkit="HACKERNEWS"),
                ToolDescriptor(name="HACKERNEWS_GET_ITEM", description="One item", toolkit="HACKERNEWS"),
            ],
            "GITHUB": [
                ToolDescriptor(name="GITHUB_CREATE_AN_ISSUE", description="Create an issue", toolkit="GITHUB"),
                ToolDescriptor(name="GITHUB_DELETE_A_REPOSITORY", description="Delete a repo", toolkit="GITHUB"),
            ],
            "WEATHERMAP": [
                ToolDescriptor(name="WEATHERMAP_WEATHER", description="Current weather", toolkit="WEATHERMAP"),
            ],
        }
    )


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def user() -> UserIdentity:
    return UserIdentity(id="user-1", name="Ada", email="ada@example.com")


@pytest.fixture
def session_manager() -> InMemorySessionManager:
    return InMemorySessionManager()


@pytest.fixture
def services(provider, tool_backend, catalog, session_manager):
    return assemble_services(
        backends={"groq": provider},
        tool_backend=tool_backend,
        catalog=catalog,
        sessions=session_manager,
        optimizer=ContextOptimizer(tokenizer=None),
    )


@pytest.fixture
def user_message() -> ChatMessage:
    return ChatMessage(role="user", content="What is on Hacker News today?")


@pytest.fixture
def active_connection():
    def _make(toolkit: str, user_id: str = "user-1", status: ConnectionStatus = ConnectionStatus.ACTIVE):
        return Connection(id=f"ca_{toolkit.lower()}", toolkit=toolkit, status=status, user_id=user_id)

    return _make
