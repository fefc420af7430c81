# =============================================================================
# app/application.py - Composition Root
# =============================================================================
# Wires settings, logger, telemetry, FastAPI app, and HTTP server together
# and owns the run/shutdown sequence.
#
# Usage:
#   application = Application.initialize(load_settings())
#   asyncio.run(application.run())
#
# Shutdown order is fixed: the HTTP server stops first, then telemetry, so no
# request is served after telemetry teardown begins.
# =============================================================================

import asyncio
import logging
import signal
import time

from app.config import AppSettings
from app.exceptions import ShutdownError
from app.main import create_app
from app.server import DRAIN_TIMEOUT_SECONDS, FORCE_CLOSE_GRACE_SECONDS, HTTPServer
from lib.logging_setup import setup_logging
from lib.telemetry import TelemetryProvider, setup_telemetry

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)

# Span flush budget reserved inside the overall shutdown deadline
TELEMETRY_SHUTDOWN_SECONDS = 5.0

# Shortest drain the server is ever given
MIN_DRAIN_SECONDS = 1.0


class Application:
    """
    The running service: server, telemetry, settings, and logger.

    Build it with Application.initialize(); the constructor only stores
    already-built parts.
    """

    def __init__(
        self,
        settings: AppSettings,
        logger: logging.Logger,
        telemetry: TelemetryProvider,
        server: HTTPServer,
    ):
        self.settings = settings
        self.logger = logger
        self.telemetry = telemetry
        self.server = server

    @classmethod
    def initialize(cls, settings: AppSettings) -> "Application":
        """
        Build every component from settings.

        Raises:
            TelemetryError: If tracing is enabled and cannot be set up
        """
        logger = setup_logging(settings.logging)
        telemetry = setup_telemetry(settings.telemetry, logger=logger)
        app = create_app(logger, tracer_provider=telemetry.tracer_provider)
        server = HTTPServer(app, settings.server, logger)

        logger.info(
            "Application initialized",
            extra={
                "addr": settings.server.address,
                "log_level": settings.logging.level,
                "telemetry_enabled": settings.telemetry.enabled,
            },
        )
        return cls(settings=settings, logger=logger, telemetry=telemetry, server=server)

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def _install_signal_handlers(self, stop_event: asyncio.Event) -> list[signal.Signals]:
        loop = asyncio.get_running_loop()
        installed = []
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except (NotImplementedError, RuntimeError):
                # Not the main thread, or a loop without signal support
                continue
            installed.append(sig)
        return installed

    def _remove_signal_handlers(self, installed: list[signal.Signals]) -> None:
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """
        Serve until stop_event is set or SIGINT/SIGTERM arrives.

        Races the server task against the stop event. Whichever finishes
        first leads into shutdown().

        Args:
            stop_event: External cancellation; a new one is created if omitted

        Raises:
            ServerStartError: If the listener cannot bind
            ServerError: If the server stops without being asked to
            ShutdownError: If teardown did not complete cleanly
        """
        stop_event = stop_event or asyncio.Event()
        installed = self._install_signal_handlers(stop_event)

        try:
            try:
                await self.server.start()
            except Exception:
                await self._shutdown_after_failure()
                raise

            serve_task = asyncio.create_task(self.server.wait())
            stop_task = asyncio.create_task(stop_event.wait())
            done, _ = await asyncio.wait(
                {serve_task, stop_task},
                return_when=asyncio.FIRST_COMPLETED,
            )

            if serve_task in done:
                stop_task.cancel()
                try:
                    serve_task.result()
                except Exception:
                    await self._shutdown_after_failure()
                    raise
                return

            self.logger.info("Shutdown signal received")
            await self.shutdown()
            serve_task.cancel()
            try:
                await serve_task
            except asyncio.CancelledError:
                pass
            self.logger.info("Application shutdown complete")
        finally:
            self._remove_signal_handlers(installed)

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    async def _shutdown_telemetry(self, timeout: float) -> None:
        await asyncio.to_thread(self.telemetry.shutdown, timeout)

    async def _shutdown_after_failure(self) -> None:
        # The original failure is what the caller needs to see
        try:
            await self.shutdown()
        except ShutdownError as e:
            self.logger.error("Shutdown after failure did not complete", extra={"error": e.message})

    async def shutdown(self, timeout: float = DRAIN_TIMEOUT_SECONDS) -> None:
        """
        Stop the server, then telemetry, within one overall deadline.

        The server drain is sized so that its force-close grace and the
        telemetry flush both fit inside `timeout`. Telemetry always gets at
        least TELEMETRY_SHUTDOWN_SECONDS, even after a slow server stop.

        Telemetry is shut down even if the server reported an error, since
        the server is STOPPED either way.

        Raises:
            ShutdownError: The first error seen, after both steps ran
        """
        self.logger.info("Shutting down application")
        deadline = time.monotonic() + timeout
        server_timeout = max(
            timeout - TELEMETRY_SHUTDOWN_SECONDS - FORCE_CLOSE_GRACE_SECONDS,
            MIN_DRAIN_SECONDS,
        )
        errors: list[ShutdownError] = []

        try:
            await self.server.shutdown(server_timeout)
        except ShutdownError as e:
            self.logger.error("Failed to shutdown server", extra={"error": e.message})
            errors.append(e)

        telemetry_timeout = max(deadline - time.monotonic(), TELEMETRY_SHUTDOWN_SECONDS)
        try:
            await self._shutdown_telemetry(telemetry_timeout)
        except ShutdownError as e:
            self.logger.error("Failed to shutdown telemetry", extra={"error": e.message})
            errors.append(e)

        if errors:
            raise errors[0]
