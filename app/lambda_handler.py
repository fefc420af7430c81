# =============================================================================
# app/lambda_handler.py - AWS Lambda Entry Point
# =============================================================================
# Serves the same FastAPI app behind API Gateway (HTTP API, payload v2) via
# Mangum instead of uvicorn.
#
# Deployment:
#   handler = "app.lambda_handler.handler"
#   APP_CONFIG_DIR points at the bundled configs/ directory
#
# The app is built on the first invocation (cold start) and reused by every
# later invocation in the same execution environment. On SIGTERM/SIGINT the
# tracer provider is flushed before the process exits.
# =============================================================================

import logging
import signal
import sys
from functools import lru_cache
from typing import Any, Callable

from mangum import Mangum

from app.application import SHUTDOWN_SIGNALS
from app.config import AppSettings, get_settings
from app.exceptions import ShutdownError
from app.main import create_app
from lib.logging_setup import setup_logging
from lib.telemetry import TelemetryProvider, setup_telemetry


def install_shutdown_hook(
    telemetry: TelemetryProvider,
    logger: logging.Logger,
) -> Callable[[int, Any], None]:
    """
    Flush telemetry and exit when the runtime signals shutdown.

    Returns:
        The installed signal handler
    """
    def on_shutdown_signal(signum: int, frame: Any) -> None:
        logger.info("Shutdown signal received", extra={"signal": signal.Signals(signum).name})
        try:
            telemetry.shutdown()
        except ShutdownError as e:
            logger.error("Failed to shutdown telemetry", extra={"error": e.message})
        sys.exit(0)

    for sig in SHUTDOWN_SIGNALS:
        signal.signal(sig, on_shutdown_signal)
    return on_shutdown_signal


def build_handler(settings: AppSettings) -> Mangum:
    """
    Build the Mangum adapter around a fully wired app.

    Raises:
        TelemetryError: If tracing is enabled and cannot be set up
    """
    logger = setup_logging(settings.logging)
    telemetry = setup_telemetry(settings.telemetry, logger=logger)
    app = create_app(logger, tracer_provider=telemetry.tracer_provider)
    install_shutdown_hook(telemetry, logger)

    logger.info(
        "Lambda handler initialized",
        extra={
            "log_level": settings.logging.level,
            "telemetry_enabled": settings.telemetry.enabled,
        },
    )
    return Mangum(app, lifespan="off")


@lru_cache
def get_handler() -> Mangum:
    """Cold-start construction; later calls reuse the same adapter."""
    return build_handler(get_settings())


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Lambda entry point for API Gateway HTTP API events."""
    return get_handler()(event, context)
