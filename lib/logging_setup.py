# =============================================================================
# lib/logging_setup.py - Structured Logger Construction
# =============================================================================
# Builds the service logger from LoggingSettings.
#
# Usage:
#   from lib.logging_setup import setup_logging
#   logger = setup_logging(settings.logging)
#   logger.info("Processing echo request", extra={"author": "Alice"})
#
# The injected logger is a plain logging.Logger. Its handler renders through
# structlog's ProcessorFormatter, so `extra=` fields become structured keys:
# - text: structlog ConsoleRenderer without colors (key=value pairs)
# - json: structlog JSONRenderer, one object per line
#
# structlog.configure() is never called and the root logger is never touched;
# everything lives on the "hello_echo" logger's own handler.
# =============================================================================

import logging
import sys
from typing import TextIO

import structlog

from app.config import LoggingSettings

LOGGER_NAME = "hello_echo"

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(level: str) -> int:
    """Map a level name to a logging constant. Unknown names mean INFO."""
    return LEVELS.get((level or "").strip().lower(), logging.INFO)


def build_formatter(log_format: str) -> structlog.stdlib.ProcessorFormatter:
    """
    Build the stdlib formatter for the given output format.

    Records from the stdlib logger run through the pre-chain first (level,
    logger name, `extra=` fields, timestamp), then through the renderer.
    """
    pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if (log_format or "").strip().lower() == "json":
        processors = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=processors,
    )


def setup_logging(cfg: LoggingSettings, stream: TextIO | None = None) -> logging.Logger:
    """
    Construct the service logger.

    Calling this again replaces the previous handler instead of stacking a
    second one.

    Args:
        cfg: Level and format settings
        stream: Output stream (defaults to stdout)

    Returns:
        logging.Logger: The configured "hello_echo" logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(parse_level(cfg.level))
    logger.propagate = False

    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(build_formatter(cfg.format))
    logger.addHandler(handler)

    return logger
