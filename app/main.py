"""
Browser Operator - Main Application
===================================

FastAPI application entry point for the Browser Operator service.

This module sets up:
- FastAPI application
- Route registration
- Middleware (request logging, error handling)
- Lifespan management (startup/shutdown)

Usage:
    # Development
    uvicorn app.main:app --reload --host 0.0.0.0 --port 8000

    # Production
    uvicorn app.main:app --workers 4 --host 0.0.0.0 --port 8000
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app import __version__
from app.api.deps import get_openai_client, get_state_store
from app.api.routes import demo_router, health_router, slack_router
from app.config import get_settings
from app.storage.state_store import BlobStateStore
from app.utils.logger import get_logger, setup_logging

settings = get_settings()
setup_logging(
    level=settings.server.log_level,
    json_logs=not settings.server.debug,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(
        "Starting Browser Operator",
        version=__version__,
        environment=settings.server.environment,
        slack_enabled=settings.slack.enabled,
    )

    yield

    logger.info("Shutting down Browser Operator")
    if get_openai_client.cache_info().currsize:
        await get_openai_client().close()
    if get_state_store.cache_info().currsize:
        store = get_state_store()
        if isinstance(store, BlobStateStore):
            await store.close()


app = FastAPI(
    title="Browser Operator",
    description=(
        "Goal-driven browser automation. Send a natural language goal and "
        "the operator drives a remote browser until it can answer."
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.server.debug else None,
    redoc_url="/redoc" if settings.server.debug else None,
    openapi_url="/openapi.json" if settings.server.debug else None,
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests with timing."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

    logger.info(
        "Request started",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        client=request.client.host if request.client else "unknown",
    )

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "Request completed",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

    return response


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.exception(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.server.debug else "An unexpected error occurred",
        },
    )


app.include_router(health_router)
app.include_router(demo_router)
app.include_router(slack_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    """Root endpoint with service information."""
    return {
        "service": "Browser Operator",
        "version": __version__,
        "docs": "/docs" if settings.server.debug else None,
        "health": "/health",
    }


# Run directly (for development)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server.server_host,
        port=settings.server.server_port,
        reload=settings.server.debug,
        log_level=settings.server.log_level.lower(),
    )
