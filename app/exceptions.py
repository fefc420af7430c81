# =============================================================================
# app/exceptions.py - Error Taxonomy and Exception Handlers
# =============================================================================
# Centralized error types for the service.
#
# Categories:
# - StartupError: fatal, raised before any traffic is served
# - RequestValidationError: recovered per request, rendered as 400
# - EncodingError: recovered per request, rendered as 500
# - ShutdownError: logged during teardown, never blocks process exit
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class HelloEchoError(Exception):
    """
    Base exception for the hello-echo service.

    All custom exceptions inherit from this class.
    Carries enough context to log the failure and, for request errors,
    to render the wire-format error body.
    """

    def __init__(
        self,
        message: str,
        code: str = "HELLO_ECHO_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a log-friendly dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Startup Errors
# =============================================================================

class StartupError(HelloEchoError):
    """Fatal error raised while building the application."""

    def __init__(self, message: str, code: str = "STARTUP_ERROR", **kwargs):
        super().__init__(message, code=code, **kwargs)


class ConfigError(StartupError):
    """Raised when configuration is missing, malformed, or mistyped."""

    def __init__(self, message: str, path: str | None = None, suggestion: str | None = None):
        super().__init__(
            message=message,
            code="CONFIG_ERROR",
            suggestion=suggestion or "Check the YAML files under configs/ and any APP_* environment variables",
            details={"path": path} if path else None,
        )


class TelemetryError(StartupError):
    """Raised when the tracer provider cannot be constructed."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to set up telemetry: {error}",
            code="TELEMETRY_ERROR",
            suggestion="Disable telemetry with APP_TELEMETRY_ENABLED=false to start without tracing",
            details={"error": error},
        )


class ServerStartError(StartupError):
    """Raised when the listener cannot bind its address."""

    def __init__(self, address: str, error: str):
        super().__init__(
            message=f"Failed to start server on {address}: {error}",
            code="SERVER_START_ERROR",
            suggestion="Check that the port is free or set APP_SERVER_PORT to another value",
            details={"address": address, "error": error},
        )


# =============================================================================
# Request Errors
# =============================================================================

class RequestValidationError(HelloEchoError):
    """Raised when a request body cannot be accepted. Rendered as 400."""

    def __init__(self, message: str, code: str = "REQUEST_VALIDATION_ERROR", **kwargs):
        super().__init__(message, code=code, status_code=400, **kwargs)


class InvalidJSONError(RequestValidationError):
    """Raised when the body does not decode into an echo request."""

    def __init__(self, error: str | None = None):
        super().__init__(
            message="Invalid JSON",
            code="INVALID_JSON",
            details={"error": error} if error else None,
        )


class MissingFieldsError(RequestValidationError):
    """Raised when message or author is empty or absent."""

    def __init__(self):
        super().__init__(
            message="Missing required fields: message and author",
            code="MISSING_FIELDS",
        )


class EncodingError(HelloEchoError):
    """Raised when a response cannot be serialized. Rendered as 500."""

    def __init__(self, error: str):
        super().__init__(
            message="Internal server error",
            code="ENCODING_ERROR",
            status_code=500,
            details={"error": error},
        )


# =============================================================================
# Lifecycle Errors
# =============================================================================

class ServerStateError(HelloEchoError):
    """Raised on an illegal server lifecycle transition."""

    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Illegal server state transition: {current} -> {target}",
            code="SERVER_STATE_ERROR",
            details={"current": current, "target": target},
        )


class ServerError(HelloEchoError):
    """Raised when a running server stops without being asked to."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Server stopped unexpectedly: {error}",
            code="SERVER_ERROR",
            details={"error": error},
        )


class ShutdownError(HelloEchoError):
    """Raised when teardown does not complete cleanly."""

    def __init__(self, message: str, code: str = "SHUTDOWN_ERROR", **kwargs):
        super().__init__(message, code=code, **kwargs)


class TelemetryShutdownError(ShutdownError):
    """Raised when the tracer provider fails to flush or shut down."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to shut down telemetry: {error}",
            code="TELEMETRY_SHUTDOWN_ERROR",
            details={"error": error},
        )


# =============================================================================
# Exception Handlers
# =============================================================================

def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the wire-format error body: {"error": "<message>"}."""
    return JSONResponse(status_code=status_code, content={"error": message})


async def request_error_handler(
    request: Request,
    exc: HelloEchoError
) -> JSONResponse:
    """
    Convert a HelloEchoError raised inside a route to its JSON response.

    The body only exposes the public message; codes and details go to the log.
    """
    logger = getattr(request.app.state, "logger", None)
    if logger is not None:
        logger.error(
            f"Request failed: {exc.message}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "code": exc.code,
                **exc.details,
            },
        )
    return error_response(exc.status_code, exc.message)
