"""Construction of the process-wide services."""

from dataclasses import dataclass, field
from typing import Any

from aurora.clients.appwrite import AppwriteSessionResolver
from aurora.clients.composio import ComposioClient, DisabledToolBackend, ToolBackend
from aurora.clients.openai_compatible import OpenAICompatibleClient
from aurora.config import PROVIDERS, Settings, load_toolkits
from aurora.graphs.chat_turn import ChatOrchestrator
from aurora.models.session import UserIdentity
from aurora.services.chat_store import InMemoryChatStore
from aurora.services.context import ContextOptimizer
from aurora.services.llm import ModelProviderClient, ProviderBackend
from aurora.services.naming import TitleGenerator
from aurora.services.session_manager import InMemorySessionManager, SessionResolver
from aurora.services.streaming import StreamingTransport
from aurora.services.toolkits import StaticToolkitCatalog, ToolCatalogResolver
from aurora.tools.executor import ToolExecutor
from aurora.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Services:
    """Everything the API layer needs, built once at startup."""

    llm: ModelProviderClient
    orchestrator: ChatOrchestrator
    streaming: StreamingTransport
    title_generator: TitleGenerator
    resolver: ToolCatalogResolver
    executor: ToolExecutor
    sessions: SessionResolver
    chat_store: InMemoryChatStore
    closeables: list[Any] = field(default_factory=list)

    async def aclose(self) -> None:
        for closeable in self.closeables:
            await closeable.close()


def assemble_services(
    backends: dict[str, ProviderBackend],
    tool_backend: ToolBackend,
    catalog: StaticToolkitCatalog,
    sessions: SessionResolver,
    optimizer: ContextOptimizer | None = None,
    chat_store: InMemoryChatStore | None = None,
) -> Services:
    """Wire services from their collaborators."""
    llm = ModelProviderClient(backends)
    resolver = ToolCatalogResolver(catalog, tool_backend)
    executor = ToolExecutor(tool_backend)
    return Services(
        llm=llm,
        orchestrator=ChatOrchestrator(llm, resolver, executor),
        streaming=StreamingTransport(llm, optimizer or ContextOptimizer()),
        title_generator=TitleGenerator(llm),
        resolver=resolver,
        executor=executor,
        sessions=sessions,
        chat_store=chat_store or InMemoryChatStore(),
    )


def build_dev_sessions(settings: Settings) -> InMemorySessionManager:
    """In-memory sessions for running without Appwrite.

    ``AURORA_DEV_TOKEN`` is accepted as a bearer token for ``AURORA_DEV_USER_ID``.
    """
    sessions = InMemorySessionManager()
    if settings.dev_token:
        sessions.register_token(settings.dev_token, UserIdentity(id=settings.dev_user_id, name="Developer"))
        logger.info(f"Appwrite not configured; AURORA_DEV_TOKEN authenticates as {settings.dev_user_id}")
    else:
        logger.warning("Appwrite not configured and AURORA_DEV_TOKEN not set; every request will be rejected")
    return sessions


def build_services(settings: Settings | None = None) -> Services:
    """Build services from environment settings."""
    settings = settings or Settings.from_env()
    closeables: list[Any] = []

    backends: dict[str, ProviderBackend] = {}
    for provider in PROVIDERS:
        api_key = settings.provider_keys.get(provider.name)
        if not api_key:
            logger.info(f"Provider {provider.name} disabled: {provider.api_key_env} not set")
            continue
        client = OpenAICompatibleClient(provider, api_key)
        backends[provider.name] = client
        closeables.append(client)
    if not backends:
        logger.warning("No provider API key configured; every completion will fail")

    tool_backend: ToolBackend
    if settings.composio_api_key:
        tool_backend = ComposioClient(settings.composio_api_key, settings.composio_base_url)
    else:
        logger.info("COMPOSIO_API_KEY not set; tools are disabled")
        tool_backend = DisabledToolBackend()
    closeables.append(tool_backend)

    sessions: SessionResolver
    if settings.appwrite_endpoint and settings.appwrite_project_id:
        sessions = AppwriteSessionResolver(settings.appwrite_endpoint, settings.appwrite_project_id)
        closeables.append(sessions)
    else:
        sessions = build_dev_sessions(settings)

    catalog = StaticToolkitCatalog(load_toolkits(settings.toolkits_file))
    services = assemble_services(backends, tool_backend, catalog, sessions)
    services.closeables = closeables
    return services
