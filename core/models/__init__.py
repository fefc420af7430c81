# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# - echo.py: Echo request/response schemas
# - health.py: Health and error schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

from .echo import EchoRequest, EchoResponse
from .health import ErrorResponse, HealthResponse

__all__ = [
    "EchoRequest",
    "EchoResponse",
    "ErrorResponse",
    "HealthResponse",
]
