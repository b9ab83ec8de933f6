"""Main FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aurora import __version__
from aurora.api.chats import router as chats_router
from aurora.api.endpoints import router
from aurora.exceptions import AuroraError, ProviderExhaustedError
from aurora.models.conversation import ErrorResponse
from aurora.services.container import Services, build_services
from aurora.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(services: Services | None = None) -> FastAPI:
    """Create the application.

    Args:
        services: Prebuilt services; built from the environment at startup when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_services = getattr(app.state, "services", None) is None
        if owns_services:
            setup_logging()
            app.state.services = build_services()
            logger.info("Services started")
        try:
            yield
        finally:
            if owns_services:
                await app.state.services.aclose()
                logger.info("Services stopped")

    app = FastAPI(
        title="Aurora Chat",
        description="Chat backend with provider fallback, tool calling through Composio and streamed answers.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Chat", "description": "Streaming chat, tool-calling chat and title generation."},
            {"name": "Chats", "description": "Saved conversations of the authenticated user."},
            {"name": "Toolkits", "description": "Configured toolkits and the caller's connections."},
            {"name": "Health", "description": "Service health monitoring and status checks."},
        ],
    )
    if services is not None:
        app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning(f"Invalid request body on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(ProviderExhaustedError)
    async def provider_exhausted_handler(request: Request, exc: ProviderExhaustedError) -> JSONResponse:
        logger.error(f"All providers failed on {request.url.path}: {exc.message}")
        body = ErrorResponse(
            error=exc.message,
            tool_calls=exc.tool_calls or None,
            tool_results=exc.tool_results or None,
            available_toolkits=exc.available_toolkits or None,
        )
        return JSONResponse(status_code=500, content=body.model_dump(mode="json", by_alias=True, exclude_none=True))

    @app.exception_handler(AuroraError)
    async def aurora_error_handler(request: Request, exc: AuroraError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"Request to {request.url.path} failed: {exc}", exc_info=True)
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(router)
    app.include_router(chats_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("aurora.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
