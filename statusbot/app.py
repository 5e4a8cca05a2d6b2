#!/usr/bin/env python3
"""
FastAPI Application Entry Point

Status server for the bot: public info, health probes and metrics.
Configures middleware, exception handlers and the service lifecycle.
"""

import asyncio
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from statusbot.api.health_routes import router as health_router
from statusbot.api.status_routes import router as status_router
from statusbot.bootstrap import ServiceContainer, build_services
from statusbot.core.config.constants import HEADER_REQUEST_ID, HEADER_RETRY_AFTER
from statusbot.core.config.settings import get_settings
from statusbot.core.exceptions import (
    ConfigurationError,
    RateLimitExceededError,
    StatusBotError,
    UpstreamUnavailableError,
)
from statusbot.core.logging.logger import (
    clear_request_id,
    get_logger,
    get_request_id,
    set_request_id,
    setup_logging,
)
from statusbot.rate_limiting.middleware import RateLimitMiddleware

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Sorry, something went wrong. Please try again later."

ERROR_STATUS_CODES: dict[type[StatusBotError], int] = {
    UpstreamUnavailableError: 503,
    RateLimitExceededError: 429,
    ConfigurationError: 500,
}


def status_code_for(exc: StatusBotError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).
    """
    services: ServiceContainer = app.state.services
    settings = services.settings

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        "Starting status server",
        stage="APP.0",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    services.error_recovery.install_global_handlers(asyncio.get_running_loop())
    services.rate_limiter.start_cleanup_task(settings.rate_limit.RATE_LIMIT_CLEANUP_INTERVAL_S)
    services.health_checker.start()
    logger.info("Application startup complete", stage="APP.0")

    try:
        yield
    finally:
        logger.info("Shutting down application", stage="APP.9")
        services.health_checker.stop()
        services.rate_limiter.stop_cleanup_task()
        services.error_recovery.uninstall_global_handlers()
        await services.aclose()
        logger.info("Application shutdown complete", stage="APP.9")


# ============================================================================
# Application Factory
# ============================================================================


def create_app(services: ServiceContainer | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        services: Prebuilt container; build_services() is used when omitted

    Returns:
        FastAPI: Configured application instance
    """
    services = services or build_services(get_settings())
    settings = services.settings

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Status server for the game-status chat bot",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.services = services

    # Middleware runs in reverse registration order: request id -> CORS -> rate limit
    app.add_middleware(RateLimitMiddleware, limiter=services.rate_limiter)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.CORS_ORIGINS if settings.app.ENVIRONMENT != "production" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[HEADER_REQUEST_ID],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Inject request ID into all requests for correlation."""
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)
        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id
            return response
        finally:
            clear_request_id()

    @app.exception_handler(StatusBotError)
    async def status_bot_exception_handler(request: Request, exc: StatusBotError):
        status_code = status_code_for(exc)
        logger.error(
            f"Request failed: {exc.message}",
            stage="APP.1",
            path=request.url.path,
            status_code=status_code,
            error=exc.to_dict(),
        )

        headers = {}
        if isinstance(exc, RateLimitExceededError) and "retry_after" in exc.details:
            headers[HEADER_RETRY_AFTER] = str(exc.details["retry_after"])

        return JSONResponse(
            status_code=status_code,
            content={
                "error": type(exc).__name__,
                "message": GENERIC_ERROR_MESSAGE,
                "request_id": exc.request_id or get_request_id(),
            },
            headers=headers,
        )

    app.include_router(status_router)
    app.include_router(health_router)

    return app
