# =============================================================================
# tests/test_lambda_handler.py - Lambda Entry Point Tests
# =============================================================================
# Drives the Mangum adapter with API Gateway HTTP API (payload v2) events.
# No AWS services are involved.
# =============================================================================

import json
import signal
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.application import SHUTDOWN_SIGNALS
from app.config import AppSettings
from app.exceptions import TelemetryShutdownError
from app.lambda_handler import build_handler, get_handler, handler, install_shutdown_hook

LAMBDA_CONTEXT = SimpleNamespace(aws_request_id="req-1", function_name="hello-echo")


def api_gateway_event(method, path, body="", headers=None):
    """Minimal API Gateway HTTP API (v2) proxy event."""
    return {
        "version": "2.0",
        "routeKey": "$default",
        "rawPath": path,
        "rawQueryString": "",
        "headers": {
            "accept": "*/*",
            "host": "localhost",
            "content-type": "application/json",
            **(headers or {}),
        },
        "requestContext": {
            "accountId": "123456789012",
            "apiId": "hello-echo",
            "domainName": "localhost",
            "domainPrefix": "localhost",
            "http": {
                "method": method,
                "path": path,
                "protocol": "HTTP/1.1",
                "sourceIp": "192.0.2.10",
                "userAgent": "pytest",
            },
            "requestId": "req-1",
            "routeKey": "$default",
            "stage": "$default",
            "time": "19/Oct/2026:00:00:00 +0000",
            "timeEpoch": 1792368000000,
        },
        "body": body,
        "isBase64Encoded": False,
    }


def lowercase_headers(response):
    return {key.lower(): value for key, value in response["headers"].items()}


@pytest.fixture(autouse=True)
def restore_signal_handlers():
    """The adapter installs SIGINT/SIGTERM handlers; put the originals back."""
    saved = {sig: signal.getsignal(sig) for sig in SHUTDOWN_SIGNALS}
    get_handler.cache_clear()
    yield
    get_handler.cache_clear()
    for sig, previous in saved.items():
        signal.signal(sig, previous)


@pytest.fixture
def lambda_app():
    return build_handler(AppSettings(logging={"level": "error"}))


# =============================================================================
# Routing
# =============================================================================

class TestLambdaRoutes:
    """The same routes answer through the Lambda adapter."""

    def test_healthz(self, lambda_app):
        response = lambda_app(api_gateway_event("GET", "/healthz"), LAMBDA_CONTEXT)

        assert response["statusCode"] == 200
        assert json.loads(response["body"]) == {"status": "ok"}

    def test_readyz(self, lambda_app):
        response = lambda_app(api_gateway_event("GET", "/readyz"), LAMBDA_CONTEXT)

        assert response["statusCode"] == 200
        assert json.loads(response["body"]) == {"status": "ready"}

    def test_echo(self, lambda_app):
        body = json.dumps({"message": "Hello Lambda Test", "author": "Integration Test"})

        response = lambda_app(api_gateway_event("POST", "/v1/echo", body=body), LAMBDA_CONTEXT)

        assert response["statusCode"] == 200
        assert json.loads(response["body"]) == {
            "message": "Hello Lambda Test",
            "author": "Integration Test",
        }
        assert lowercase_headers(response)["content-type"] == "application/json"

    def test_echo_invalid_json(self, lambda_app):
        response = lambda_app(api_gateway_event("POST", "/v1/echo", body="{not json"), LAMBDA_CONTEXT)

        assert response["statusCode"] == 400
        assert json.loads(response["body"]) == {"error": "Invalid JSON"}

    def test_middleware_runs(self, lambda_app):
        event = api_gateway_event("GET", "/healthz", headers={"x-request-id": "lambda-123"})

        response = lambda_app(event, LAMBDA_CONTEXT)

        assert lowercase_headers(response)["x-request-id"] == "lambda-123"


class TestEntryPoint:
    """Tests for the module-level handler."""

    def test_handler_builds_once_from_settings(self, config_dir, monkeypatch):
        monkeypatch.setenv("APP_CONFIG_DIR", str(config_dir))
        monkeypatch.setenv("APP_LOGGING_LEVEL", "error")

        first = handler(api_gateway_event("GET", "/healthz"), LAMBDA_CONTEXT)
        second = handler(api_gateway_event("GET", "/readyz"), LAMBDA_CONTEXT)

        assert first["statusCode"] == 200
        assert second["statusCode"] == 200
        assert get_handler.cache_info().misses == 1

    def test_signal_handlers_installed(self, lambda_app):
        for sig in SHUTDOWN_SIGNALS:
            assert getattr(signal.getsignal(sig), "__name__", None) == "on_shutdown_signal"


# =============================================================================
# Shutdown Hook
# =============================================================================

class TestShutdownHook:
    """SIGTERM flushes telemetry, then exits."""

    def test_flushes_telemetry_and_exits(self):
        telemetry = MagicMock()
        hook = install_shutdown_hook(telemetry, MagicMock())

        with pytest.raises(SystemExit) as exc_info:
            hook(signal.SIGTERM, None)

        assert exc_info.value.code == 0
        telemetry.shutdown.assert_called_once()

    def test_telemetry_error_is_logged_not_raised(self):
        telemetry = MagicMock()
        telemetry.shutdown.side_effect = TelemetryShutdownError("flush failed")
        logger = MagicMock()
        hook = install_shutdown_hook(telemetry, logger)

        with pytest.raises(SystemExit) as exc_info:
            hook(signal.SIGTERM, None)

        assert exc_info.value.code == 0
        logger.error.assert_called_once()
