# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Provides liveness and readiness endpoints for orchestrators and load
# balancers. Neither performs dependency checks; readiness is currently
# equivalent to liveness.
# =============================================================================

from fastapi import APIRouter

from core.models.health import HealthResponse

router = APIRouter()


@router.get("/healthz", response_model=HealthResponse)
async def liveness_check():
    """
    Liveness check endpoint.

    Returns whether the service process is alive.
    """
    return HealthResponse(status="ok")


@router.get("/readyz", response_model=HealthResponse)
async def readiness_check():
    """
    Readiness check endpoint.

    Returns whether the service can accept traffic.
    """
    return HealthResponse(status="ready")
