# =============================================================================
# app/middleware.py - HTTP Middleware Chain
# =============================================================================
# Middleware applied to every route, outermost first:
# - AccessLogMiddleware: one structured log line per request
# - RecoveryMiddleware: converts unhandled exceptions into a 500
# - RequestIDMiddleware: propagates or generates X-Request-ID
# - RealIPMiddleware: takes the client address from proxy headers
# - TimeoutMiddleware: bounds each request to a fixed duration
#
# Starlette runs the most recently added middleware first, so
# install_middleware() adds them in reverse.
# =============================================================================

import asyncio
import logging
import time
import uuid

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.exceptions import error_response

REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_TIMEOUT_SECONDS = 60.0

# Checked in order; the first header present wins
REAL_IP_HEADERS = ("true-client-ip", "x-real-ip", "x-forwarded-for")


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, status, duration, request id, and client address."""

    def __init__(self, app: ASGIApp, logger: logging.Logger):
        super().__init__(app)
        self.logger = logger

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        self.logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 3),
                "request_id": response.headers.get(REQUEST_ID_HEADER),
                "remote_ip": request.client.host if request.client else None,
            },
        )
        return response


class RecoveryMiddleware(BaseHTTPMiddleware):
    """
    Guarded boundary around request dispatch.

    Any exception that escapes a route is logged with its traceback and
    turned into a 500 so the listener keeps serving other requests.
    """

    def __init__(self, app: ASGIApp, logger: logging.Logger):
        super().__init__(app)
        self.logger = logger

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            self.logger.exception(
                f"Unhandled error: {e}",
                extra={"method": request.method, "path": request.url.path},
            )
            return error_response(500, "Internal server error")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Request-ID or generate one, and echo it back."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def extract_real_ip(request: Request) -> str | None:
    """
    Client address as reported by a fronting proxy, if any.

    X-Forwarded-For may carry a chain; the first entry is the original client.
    """
    for header in REAL_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            ip = value.split(",")[0].strip()
            if ip:
                return ip
    return None


class RealIPMiddleware(BaseHTTPMiddleware):
    """Rewrite the ASGI client address from proxy headers."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        ip = extract_real_ip(request)
        if ip is not None:
            port = request.client.port if request.client else 0
            request.scope["client"] = (ip, port)
        return await call_next(request)


class TimeoutMiddleware:
    """
    Cancel a request that runs longer than `timeout` seconds.

    Written as plain ASGI so the handler task is actually cancelled. A 504 is
    sent if the handler had not started its response yet.
    """

    def __init__(self, app: ASGIApp, logger: logging.Logger, timeout: float = REQUEST_TIMEOUT_SECONDS):
        self.app = app
        self.logger = logger
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, send_wrapper), timeout=self.timeout)
        except asyncio.TimeoutError:
            self.logger.error(
                f"Request timed out after {self.timeout}s",
                extra={"method": scope.get("method"), "path": scope.get("path")},
            )
            if not response_started:
                await error_response(504, "Request timed out")(scope, receive, send)


def install_middleware(
    app: FastAPI,
    logger: logging.Logger,
    request_timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> None:
    """Add the middleware chain to app in the documented order."""
    # Innermost first
    app.add_middleware(TimeoutMiddleware, logger=logger, timeout=request_timeout)
    app.add_middleware(RealIPMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RecoveryMiddleware, logger=logger)
    app.add_middleware(AccessLogMiddleware, logger=logger)
