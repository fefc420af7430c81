# =============================================================================
# app/main.py - FastAPI Application Factory
# =============================================================================
# Builds the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   app = create_app(logger)
#   app = create_app(logger, tracer_provider=telemetry.tracer_provider)
#
# The logger and tracer provider are injected; nothing here reads settings or
# touches process-wide state.
# =============================================================================

import logging

from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.trace import TracerProvider

from app.exceptions import HelloEchoError, request_error_handler
from app.middleware import REQUEST_TIMEOUT_SECONDS, install_middleware
from app.routers import echo, health, openapi
from core.services.echo_service import EchoService

APP_TITLE = "hello-echo"
APP_VERSION = "0.1.0"


def create_app(
    logger: logging.Logger,
    tracer_provider: TracerProvider | None = None,
    request_timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> FastAPI:
    """
    Compose the HTTP application.

    Args:
        logger: Service logger shared by middleware, handlers, and services
        tracer_provider: Instrument requests with this provider when given
        request_timeout: Per-request deadline in seconds

    Returns:
        FastAPI: Ready-to-serve ASGI application
    """
    # Generated docs are off; /api/openapi.yaml is the published contract
    app = FastAPI(
        title=APP_TITLE,
        version=APP_VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.logger = logger
    app.state.echo_service = EchoService(logger)

    # =========================================================================
    # Middleware
    # =========================================================================

    install_middleware(app, logger, request_timeout=request_timeout)

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    app.add_exception_handler(HelloEchoError, request_error_handler)

    # =========================================================================
    # Routers
    # =========================================================================

    # Health check endpoints
    app.include_router(health.router, tags=["Health"])

    # Echo endpoint
    app.include_router(echo.router, tags=["Echo"])

    # Static OpenAPI document
    app.include_router(openapi.router)

    if tracer_provider is not None:
        FastAPIInstrumentor.instrument_app(app, tracer_provider=tracer_provider)

    return app
