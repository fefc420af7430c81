# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .echo_service import EchoService

__all__ = [
    "EchoService",
]
