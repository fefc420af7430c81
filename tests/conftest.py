# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Clears APP_* environment variables so the host environment cannot leak
#   into configuration tests
# - Provides a logger that writes to an in-memory stream
# - Provides a TestClient over a freshly built app
# =============================================================================

import io
import os
import textwrap

import pytest
from fastapi.testclient import TestClient

from app.config import LoggingSettings, get_settings
from app.main import create_app
from lib.logging_setup import setup_logging


# =============================================================================
# Environment
# =============================================================================

@pytest.fixture(autouse=True)
def clean_app_env(monkeypatch):
    """Remove APP_* variables and reset the settings cache around each test."""
    for key in list(os.environ):
        if key.upper().startswith("APP_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def write_config(tmp_path):
    """
    Write a YAML layer into a temporary config directory.

    Usage:
        write_config("default", '''
            server:
              port: 9000
        ''')
    """
    def _write(name: str, content: str, suffix: str = ".yaml"):
        path = tmp_path / f"{name}{suffix}"
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def config_dir(tmp_path, write_config):
    """Config directory holding a minimal default layer."""
    write_config("default", """
        server:
          host: 0.0.0.0
          port: 8080
        logging:
          level: info
          format: text
        telemetry:
          service_name: hello-echo
          service_version: 0.1.0
          enabled: false
    """)
    return tmp_path


# =============================================================================
# Logging
# =============================================================================

@pytest.fixture
def log_stream():
    """In-memory stream receiving everything the test logger writes."""
    return io.StringIO()


@pytest.fixture
def logger(log_stream):
    """Service logger at DEBUG level, text format."""
    return setup_logging(LoggingSettings(level="debug", format="text"), stream=log_stream)


# =============================================================================
# HTTP
# =============================================================================

@pytest.fixture
def app(logger):
    """FastAPI app built with the test logger and no tracing."""
    return create_app(logger)


@pytest.fixture
def client(app):
    """TestClient that returns 500 responses instead of raising."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def echo_payload():
    """The canonical echo request body."""
    return {"message": "Hello, World!", "author": "Alice"}
