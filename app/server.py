# =============================================================================
# app/server.py - HTTP Server Lifecycle
# =============================================================================
# Wraps uvicorn.Server in an explicit state machine:
#
#   CREATED -> STARTING -> RUNNING -> SHUTTING_DOWN -> STOPPED
#                    \          \
#                     \-> FAILED \-> FAILED
#
# - start():    bind host:port, begin serving, wait until the listener is up
# - wait():     resolves when the serve task ends
# - shutdown(): stop accepting, drain in-flight requests, force-close at the
#               deadline
#
# uvicorn's own signal capture is disabled. Signals belong to the caller
# (see app/application.py), which decides when to call shutdown().
# =============================================================================

import asyncio
import contextlib
import logging
import socket
import time
from enum import Enum

import uvicorn
from fastapi import FastAPI

from app.config import ServerSettings
from app.exceptions import ServerError, ServerStartError, ServerStateError, ShutdownError

DRAIN_TIMEOUT_SECONDS = 30.0

# Extra time past the drain deadline for uvicorn to finish cancelling
FORCE_CLOSE_GRACE_SECONDS = 5.0

STARTUP_POLL_INTERVAL = 0.01


class ServerState(str, Enum):
    """Lifecycle states of HTTPServer."""
    CREATED = "created"
    STARTING = "starting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"
    FAILED = "failed"


ALLOWED_TRANSITIONS: dict[ServerState, set[ServerState]] = {
    ServerState.CREATED: {ServerState.STARTING, ServerState.STOPPED},
    ServerState.STARTING: {ServerState.RUNNING, ServerState.FAILED},
    ServerState.RUNNING: {ServerState.SHUTTING_DOWN, ServerState.FAILED},
    ServerState.SHUTTING_DOWN: {ServerState.STOPPED},
    ServerState.STOPPED: set(),
    ServerState.FAILED: set(),
}


class _UvicornServer(uvicorn.Server):
    """uvicorn.Server that leaves signal handling to the application."""

    @contextlib.contextmanager
    def capture_signals(self):
        yield


def bind_socket(host: str, port: int) -> socket.socket:
    """
    Bind a listening TCP socket.

    Raises:
        OSError: Address in use, permission denied, unknown host
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    return socket.create_server((host, port), family=family)


class HTTPServer:
    """
    Owns one listener and the uvicorn server serving it.

    Attributes:
        state: Current lifecycle state
    """

    def __init__(
        self,
        app: FastAPI,
        cfg: ServerSettings,
        logger: logging.Logger,
        drain_timeout: float = DRAIN_TIMEOUT_SECONDS,
    ):
        self.app = app
        self.cfg = cfg
        self.logger = logger
        self.drain_timeout = drain_timeout
        self.state = ServerState.CREATED

        self._server: _UvicornServer | None = None
        self._socket: socket.socket | None = None
        self._task: asyncio.Task | None = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def _transition(self, target: ServerState) -> None:
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise ServerStateError(self.state.value, target.value)
        self.logger.debug(
            f"Server state {self.state.value} -> {target.value}",
            extra={"from_state": self.state.value, "to_state": target.value},
        )
        self.state = target

    @property
    def bound_port(self) -> int | None:
        """Actual listening port; differs from cfg.port when cfg.port is 0."""
        if self._socket is None:
            return None
        return self._socket.getsockname()[1]

    def _uvicorn_config(self) -> uvicorn.Config:
        return uvicorn.Config(
            self.app,
            host=self.cfg.host,
            port=self.cfg.port,
            lifespan="off",
            access_log=False,
            log_config=None,
            timeout_keep_alive=max(1, int(self.cfg.idle_timeout)),
            timeout_graceful_shutdown=max(1, int(self.drain_timeout)),
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """
        Bind and start serving.

        Returns once the listener accepts connections.

        Raises:
            ServerStartError: If binding or uvicorn startup fails
            ServerStateError: If called more than once
        """
        self._transition(ServerState.STARTING)
        self.logger.info("Starting HTTP server", extra={"addr": self.cfg.address})

        try:
            self._socket = bind_socket(self.cfg.host, self.cfg.port)
        except OSError as e:
            self._transition(ServerState.FAILED)
            self.logger.error("Failed to bind listener", extra={"addr": self.cfg.address, "error": str(e)})
            raise ServerStartError(self.cfg.address, str(e)) from e

        self._server = _UvicornServer(self._uvicorn_config())
        self._task = asyncio.create_task(self._server.serve(sockets=[self._socket]))

        while not self._server.started and not self._task.done():
            await asyncio.sleep(STARTUP_POLL_INTERVAL)

        if not self._server.started:
            self._transition(ServerState.FAILED)
            self._socket.close()
            error = self._task.exception() if not self._task.cancelled() else None
            raise ServerStartError(self.cfg.address, str(error or "server exited during startup"))

        self._transition(ServerState.RUNNING)
        self.logger.info("HTTP server running", extra={"addr": f"{self.cfg.host}:{self.bound_port}"})

    async def wait(self) -> None:
        """
        Block until the serve task ends.

        A serve task that ends while RUNNING (not shutting down) is a failure.

        Raises:
            ServerError: If the server stopped on its own
        """
        if self._task is None:
            return

        try:
            await asyncio.shield(self._task)
        except Exception as e:
            if self.state == ServerState.RUNNING:
                self._transition(ServerState.FAILED)
            self.logger.error("Server error", extra={"error": str(e)})
            raise ServerError(str(e)) from e

        if self.state == ServerState.RUNNING:
            self._transition(ServerState.FAILED)
            raise ServerError("serve loop exited")

    async def shutdown(self, timeout: float | None = None) -> None:
        """
        Stop accepting connections and drain in-flight requests.

        Requests still running at the deadline are cancelled by uvicorn. If
        even that does not finish, the serve task itself is cancelled.

        Args:
            timeout: Drain deadline in seconds (defaults to drain_timeout)

        Raises:
            ShutdownError: If the drain deadline was exceeded or serving
                failed during shutdown. The server is STOPPED either way.
        """
        if self.state in (ServerState.STOPPED, ServerState.FAILED, ServerState.SHUTTING_DOWN):
            return
        if self.state == ServerState.CREATED:
            self._transition(ServerState.STOPPED)
            return

        self._transition(ServerState.SHUTTING_DOWN)
        self.logger.info("Shutting down HTTP server")

        timeout = self.drain_timeout if timeout is None else timeout
        if self._server is not None:
            self._server.config.timeout_graceful_shutdown = max(1, int(timeout))
            self._server.should_exit = True

        started = time.monotonic()
        error: ShutdownError | None = None

        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout + FORCE_CLOSE_GRACE_SECONDS)
        except asyncio.TimeoutError:
            self._server.force_exit = True
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            error = ShutdownError(f"Server did not stop within {timeout}s; serve task cancelled")
        except Exception as e:
            error = ShutdownError(f"Server failed during shutdown: {e}", details={"error": str(e)})
        finally:
            self._transition(ServerState.STOPPED)

        if error is None and time.monotonic() - started >= timeout:
            error = ShutdownError(f"Drain deadline of {timeout}s exceeded; in-flight requests were cancelled")

        if error is not None:
            self.logger.error(error.message)
            raise error

        self.logger.info("HTTP server stopped")
