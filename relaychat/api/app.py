"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
error rendering and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from relaychat.api.chat import METHOD_NOT_ALLOWED
from relaychat.api.chat import router as chat_router
from relaychat.errors import RelayChatError
from relaychat.models.schemas import ErrorPayload

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Log application startup and shutdown."""
    logger.info("Starting RelayChat API...")
    yield
    logger.info("Shutting down RelayChat API...")


async def relay_error_handler(request: Request, exc: RelayChatError) -> JSONResponse:
    """Render relay errors as ``{"error": message}`` with their status."""
    logger.warning(f"{request.method} {request.url.path} failed: {exc.status_code} {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorPayload(error=exc.message).model_dump(),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors in the same ``{"error": message}`` shape."""
    message = METHOD_NOT_ALLOWED if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorPayload(error=message).model_dump(),
        headers=exc.headers,
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="RelayChat API",
        description=(
            "Streaming relay to an LLM chat-completions provider. Forwards the "
            "provider's event stream to the browser as tagged reasoning and "
            "content events."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    application.add_exception_handler(RelayChatError, relay_error_handler)
    application.add_exception_handler(StarletteHTTPException, http_error_handler)
    application.include_router(chat_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "relaychat"}

    return application


app = create_app()
