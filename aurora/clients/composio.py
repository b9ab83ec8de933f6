"""Composio tool backend client (REST v3)."""

from typing import Any, Protocol

import httpx

from aurora.exceptions import ToolExecutionError
from aurora.models.toolkits import Connection, ConnectionStatus, ToolDescriptor, ToolExecutionResponse
from aurora.utils.logging import get_logger

logger = get_logger(__name__)


class ToolBackend(Protocol):
    """External service that lists connections and tools and runs tools."""

    async def list_connections(self, user_id: str) -> list[Connection]: ...

    async def list_tools(self, toolkit_slug: str) -> list[ToolDescriptor]: ...

    async def execute_tool(self, tool_name: str, arguments: dict[str, Any], user_id: str) -> ToolExecutionResponse: ...


class ComposioClient:
    """Thin async wrapper over the Composio REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://backend.composio.dev",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize Composio client.

        Args:
            api_key: Composio project API key
            base_url: API root
            timeout: Per-request timeout in seconds
            http_client: Preconfigured client (mainly for tests)
        """
        self.http = http_client or httpx.AsyncClient(
            base_url=base_url,
            headers={"x-api-key": api_key},
            timeout=timeout,
        )

    async def list_connections(self, user_id: str) -> list[Connection]:
        """List a user's connected accounts."""
        response = await self.http.get("/api/v3/connected_accounts", params={"user_ids": user_id})
        response.raise_for_status()

        connections = []
        for item in response.json().get("items", []):
            toolkit = (item.get("toolkit") or {}).get("slug") or item.get("appName") or ""
            status = str(item.get("status", "")).upper()
            if status not in ConnectionStatus.__members__:
                logger.warning(f"Skipping connection {item.get('id')} with unknown status {status!r}")
                continue
            connections.append(
                Connection(
                    id=item["id"],
                    toolkit=toolkit.upper(),
                    status=ConnectionStatus(status),
                    user_id=item.get("user_id") or user_id,
                )
            )
        logger.debug(f"Found {len(connections)} connections for user {user_id}")
        return connections

    async def list_tools(self, toolkit_slug: str) -> list[ToolDescriptor]:
        """List tool definitions for a toolkit."""
        response = await self.http.get("/api/v3/tools", params={"toolkit_slug": toolkit_slug.lower()})
        response.raise_for_status()

        tools = []
        for item in response.json().get("items", []):
            parameters = item.get("input_parameters") or {"type": "object", "properties": {}}
            tools.append(
                ToolDescriptor(
                    name=item["slug"],
                    description=item.get("description") or item.get("name") or "",
                    parameters=parameters,
                    toolkit=toolkit_slug.upper(),
                )
            )
        return tools

    async def execute_tool(self, tool_name: str, arguments: dict[str, Any], user_id: str) -> ToolExecutionResponse:
        """Run a tool on behalf of a user.

        Raises:
            ToolExecutionError: The backend answered with an error status
        """
        response = await self.http.post(
            f"/api/v3/tools/execute/{tool_name}",
            json={"user_id": user_id, "arguments": arguments},
        )
        if response.is_error:
            raise ToolExecutionError(f"Tool backend returned {response.status_code}: {response.text}", tool_name)
        return ToolExecutionResponse.model_validate(response.json())

    async def close(self) -> None:
        await self.http.aclose()


class DisabledToolBackend:
    """Backend used when no Composio key is configured: nothing is connected."""

    async def list_connections(self, user_id: str) -> list[Connection]:
        return []

    async def list_tools(self, toolkit_slug: str) -> list[ToolDescriptor]:
        return []

    async def execute_tool(self, tool_name: str, arguments: dict[str, Any], user_id: str) -> ToolExecutionResponse:
        raise ToolExecutionError("Tool backend is not configured", tool_name)

    async def close(self) -> None:
        return None
