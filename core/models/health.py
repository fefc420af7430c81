# =============================================================================
# core/models/health.py - Health & Error Schemas
# =============================================================================

from typing import Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness ("ok") or readiness ("ready") status."""
    status: Literal["ok", "ready"]


class ErrorResponse(BaseModel):
    """Error body returned on any non-2xx response."""
    error: str | None = None
