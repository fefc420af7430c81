# =============================================================================
# lib/telemetry.py - OpenTelemetry Tracing Setup
# =============================================================================
# Wires an OpenTelemetry tracer provider when telemetry is enabled.
#
# Usage:
#   provider = setup_telemetry(settings.telemetry)
#   FastAPIInstrumentor.instrument_app(app, tracer_provider=provider.tracer_provider)
#   ...
#   provider.shutdown(timeout=30)
#
# Spans are exported to stdout through a batching processor. The tracer
# provider is not installed as the process-wide global; it is passed
# explicitly to whatever instruments the app.
# =============================================================================

import logging

from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from app.config import TelemetrySettings
from app.exceptions import TelemetryError, TelemetryShutdownError


class TelemetryProvider:
    """
    Owns the tracer provider for the lifetime of the process.

    A disabled provider has no tracer provider and every method is a no-op.
    """

    def __init__(
        self,
        tracer_provider: TracerProvider | None = None,
        logger: logging.Logger | None = None,
    ):
        self.tracer_provider = tracer_provider
        self._logger = logger or logging.getLogger(__name__)
        self._shut_down = False

    @property
    def enabled(self) -> bool:
        return self.tracer_provider is not None

    def shutdown(self, timeout: float = 30.0) -> None:
        """
        Flush pending spans and release the exporter.

        Safe to call more than once.

        Raises:
            TelemetryShutdownError: If flushing times out or the SDK fails
        """
        if self.tracer_provider is None or self._shut_down:
            return
        self._shut_down = True

        try:
            flushed = self.tracer_provider.force_flush(timeout_millis=int(timeout * 1000))
            self.tracer_provider.shutdown()
        except Exception as e:
            self._logger.error("Failed to shutdown tracer provider", extra={"error": str(e)})
            raise TelemetryShutdownError(str(e)) from e

        if not flushed:
            self._logger.error("Tracer provider flush timed out", extra={"timeout": timeout})
            raise TelemetryShutdownError(f"span flush did not finish within {timeout}s")


def setup_telemetry(
    cfg: TelemetrySettings,
    logger: logging.Logger | None = None,
) -> TelemetryProvider:
    """
    Build the telemetry provider described by cfg.

    Args:
        cfg: Service identity and enabled flag
        logger: Logger for shutdown failures

    Returns:
        TelemetryProvider: Enabled or no-op provider

    Raises:
        TelemetryError: If the SDK objects cannot be created
    """
    if not cfg.enabled:
        return TelemetryProvider(logger=logger)

    try:
        resource = Resource.create({
            SERVICE_NAME: cfg.service_name,
            SERVICE_VERSION: cfg.service_version,
        })
        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    except Exception as e:
        raise TelemetryError(str(e)) from e

    return TelemetryProvider(tracer_provider=tracer_provider, logger=logger)
