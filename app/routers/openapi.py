# =============================================================================
# app/routers/openapi.py - Published API Contract
# =============================================================================
# Serves the hand-maintained OpenAPI document shipped inside the package.
# The bytes are returned verbatim; nothing is generated at runtime.
# =============================================================================

from functools import lru_cache
from importlib.resources import files

from fastapi import APIRouter, Response

router = APIRouter()

OPENAPI_RESOURCE = "static/openapi.yaml"
YAML_MEDIA_TYPE = "application/yaml"


@lru_cache
def load_openapi_document() -> bytes:
    """Read the embedded document once per process."""
    return files("app").joinpath(OPENAPI_RESOURCE).read_bytes()


@router.get("/api/openapi.yaml", include_in_schema=False)
async def get_openapi_document():
    """Return the embedded OpenAPI document."""
    return Response(content=load_openapi_document(), media_type=YAML_MEDIA_TYPE)
