"""Toolkit eligibility and tool catalog resolution."""

import asyncio
from collections.abc import Sequence

from aurora.clients.composio import ToolBackend
from aurora.models.toolkits import Connection, ToolDescriptor, ToolkitDescriptor, ToolkitStatus
from aurora.utils.logging import get_logger

logger = get_logger(__name__)


class StaticToolkitCatalog:
    """Toolkit configuration loaded once at startup."""

    def __init__(self, toolkits: Sequence[ToolkitDescriptor]):
        self.toolkits = list(toolkits)

    async def list_toolkits(self) -> list[ToolkitDescriptor]:
        return list(self.toolkits)


class ToolCatalogResolver:
    """Decides which toolkits a user may use and fetches their tools."""

    def __init__(self, catalog: StaticToolkitCatalog, backend: ToolBackend):
        """Initialize resolver.

        Args:
            catalog: Configured toolkits, in declared order
            backend: Tool backend for connections and tool definitions
        """
        self.catalog = catalog
        self.backend = backend

    async def _list_connections(self, user_id: str) -> list[Connection]:
        try:
            return await self.backend.list_connections(user_id)
        except Exception as e:
            logger.warning(f"Connection lookup failed for user {user_id}, assuming none: {e}")
            return []

    async def describe_toolkits(self, user_id: str) -> list[ToolkitStatus]:
        """Every configured toolkit with the user's connection status.

        A toolkit counts as connected when it needs no auth or the user holds
        an ACTIVE connection for it. Connections are looked up fresh on every
        call and a failed lookup counts as no connections.
        """
        toolkits, connections = await asyncio.gather(
            self.catalog.list_toolkits(),
            self._list_connections(user_id),
        )

        active = {connection.toolkit.upper(): connection.id for connection in connections if connection.is_active}

        return [
            ToolkitStatus(
                id=toolkit.id,
                name=toolkit.name,
                toolkit=toolkit.toolkit,
                description=toolkit.description,
                requires_auth=toolkit.requires_auth,
                enabled=toolkit.enabled,
                is_connected=not toolkit.requires_auth or toolkit.slug_key in active,
                connection_id=active.get(toolkit.slug_key),
                allowed_tools=toolkit.allowed_tools,
            )
            for toolkit in toolkits
        ]

    async def resolve_available_toolkits(self, user_id: str) -> list[str]:
        """Toolkit slugs usable by a user, in configuration order."""
        statuses = await self.describe_toolkits(user_id)

        available = [status.toolkit for status in statuses if status.enabled and status.is_connected]
        logger.info(f"User {user_id} has {len(available)} available toolkits: {available}")
        return available

    async def get_tools(self, toolkit_slugs: Sequence[str]) -> list[ToolDescriptor]:
        """Fetch tool definitions for toolkits, honoring each toolkit's allow-list.

        Tools are returned grouped by toolkit in the order given.
        """
        configured = {toolkit.slug_key: toolkit for toolkit in await self.catalog.list_toolkits()}
        per_toolkit = await asyncio.gather(*(self.backend.list_tools(slug) for slug in toolkit_slugs))

        tools: list[ToolDescriptor] = []
        for slug, toolkit_tools in zip(toolkit_slugs, per_toolkit, strict=True):
            descriptor = configured.get(slug.upper())
            allowed = set(descriptor.allowed_tools) if descriptor else set()
            for tool in toolkit_tools:
                if allowed and tool.name not in allowed:
                    continue
                tools.append(tool)

        logger.debug(f"Loaded {len(tools)} tools for toolkits {list(toolkit_slugs)}")
        return tools

    @staticmethod
    def describe_tools(tools: Sequence[ToolDescriptor]) -> str:
        """One ``name: description`` line per tool."""
        return "\n".join(f"{tool.name}: {tool.description}" for tool in tools)
