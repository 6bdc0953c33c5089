"""ASGI application for the latchkey HTTP API.

``create_app`` wires the auth routes, health probes, correlation-ID
middleware and the 503 mapping for store and mail outages. ``app`` is the
instance uvicorn serves.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from latchkey import __version__
from latchkey.core.config import get_settings
from latchkey.core.exceptions import InfrastructureError
from latchkey.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
    new_correlation_id,
)
from latchkey.infrastructure.api.routes import auth_router
from latchkey.infrastructure.persistence.database import (
    close_database,
    get_db_manager,
    init_database,
)

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

SERVICE_UNAVAILABLE_BODY = {
    "error": "Service temporarily unavailable",
    "reason": "service_unavailable",
    "details": [],
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    configure_logging(settings)
    logger.info("latchkey starting", version=__version__, environment=settings.environment)

    await init_database()
    try:
        yield
    finally:
        await close_database()
        logger.info("latchkey stopped")


async def health() -> dict[str, str]:
    return {"status": "healthy", "version": __version__}


async def ready() -> JSONResponse:
    """Ready once the user store answers."""
    if await get_db_manager().ping():
        return JSONResponse({"status": "ready", "database": "connected"})
    return JSONResponse(
        {"status": "not_ready", "database": "disconnected"},
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


async def infrastructure_error_handler(request: Request, exc: InfrastructureError) -> JSONResponse:
    # Driver and relay messages stay in the log, never in the response
    logger.error(
        "Request failed on infrastructure",
        method=request.method,
        path=request.url.path,
        exc_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(SERVICE_UNAVAILABLE_BODY, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


async def correlation_middleware(request: Request, call_next):
    """Tag every log line of a request with one correlation ID and echo it back."""
    correlation_id = request.headers.get(CORRELATION_HEADER) or new_correlation_id()
    bind_correlation_id(correlation_id)
    try:
        response = await call_next(request)
        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
    finally:
        clear_context()


def create_app() -> FastAPI:
    settings = get_settings()
    docs = settings.is_development

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Email and password authentication with verification and recovery links",
        docs_url="/docs" if docs else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=lifespan,
    )
    app.add_api_route("/health", health, methods=["GET"], tags=["health"])
    app.add_api_route("/ready", ready, methods=["GET"], tags=["health"])
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.add_exception_handler(InfrastructureError, infrastructure_error_handler)
    app.middleware("http")(correlation_middleware)
    return app


app = create_app()
