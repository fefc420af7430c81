# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# - health.py: GET /healthz, GET /readyz
# - echo.py: POST /v1/echo
# - openapi.py: GET /api/openapi.yaml
#
# Each router is included by create_app() in main.py.
# =============================================================================

from . import echo
from . import health
from . import openapi

__all__ = [
    "echo",
    "health",
    "openapi",
]
