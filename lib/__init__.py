# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains process-level plumbing:
# - logging_setup.py: Structured logger construction (text or JSON)
# - telemetry.py: OpenTelemetry tracer provider setup and shutdown
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.logging_setup import setup_logging
from lib.telemetry import TelemetryProvider, setup_telemetry

__all__ = [
    "setup_logging",
    "TelemetryProvider",
    "setup_telemetry",
]
