"""API endpoints for the chat service."""

from datetime import UTC, datetime

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from aurora import __version__
from aurora.api.dependencies import CurrentUser, ServicesDep
from aurora.models.conversation import (
    ChatRequest,
    ChatWithToolsRequest,
    ChatWithToolsResponse,
    HealthResponse,
    TitleRequest,
    TitleResponse,
    ToolkitsResponse,
)
from aurora.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/chat", response_class=StreamingResponse, tags=["Chat"])
async def chat(request: ChatRequest, user: CurrentUser, services: ServicesDep) -> StreamingResponse:
    """Stream a plain chat answer as UTF-8 text chunks."""
    logger.info(f"Streaming chat for user {user.id} with {len(request.messages)} messages")
    candidate, body = await services.streaming.open(request.messages)

    headers = {"X-Model": str(candidate)} if candidate else {}
    return StreamingResponse(body, media_type="text/plain; charset=utf-8", headers=headers)


@router.post(
    "/chat-with-tools",
    response_model=ChatWithToolsResponse,
    response_model_exclude_none=True,
    tags=["Chat"],
)
async def chat_with_tools(
    request: ChatWithToolsRequest, user: CurrentUser, services: ServicesDep
) -> ChatWithToolsResponse:
    """Answer with tool calling.

    Tool failures are reported inside ``toolResults``; only a failure of every
    model candidate turns into an error response.
    """
    logger.info(f"Chat with tools for user {user.id}, explicit toolkits: {request.enabled_toolkits}")
    result = await services.orchestrator.handle_chat_request(request.messages, user.id, request.enabled_toolkits)

    return ChatWithToolsResponse(
        content=result.content,
        model=result.model,
        tool_calls=result.tool_calls or None,
        tool_results=result.tool_results or None,
        available_toolkits=result.available_toolkits,
    )


@router.post("/title", response_model=TitleResponse, tags=["Chat"])
async def generate_title(request: TitleRequest, user: CurrentUser, services: ServicesDep) -> TitleResponse:
    """Generate a short conversation title from a first message."""
    title = await services.title_generator.generate_title(request.message)
    logger.info(f"Generated title for user {user.id}: {title!r}")
    return TitleResponse(title=title)


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(services: ServicesDep) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
        providers=sorted(services.llm.backends),
    )


@router.get("/toolkits", response_model=ToolkitsResponse, response_model_exclude_none=True, tags=["Toolkits"])
async def list_toolkits(user: CurrentUser, services: ServicesDep) -> ToolkitsResponse:
    """Configured toolkits and which of them the caller can use."""
    toolkits = await services.resolver.describe_toolkits(user.id)
    connected = [toolkit.toolkit for toolkit in toolkits if toolkit.enabled and toolkit.is_connected]

    return ToolkitsResponse(
        toolkits=toolkits,
        connected_toolkit_slugs=connected,
        total_configured=len(toolkits),
        total_connected=len(connected),
    )
