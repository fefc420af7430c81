# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
#
# The resources are created once by create_app() and stored on app.state,
# so route handlers never reach for module-level globals.
# =============================================================================

from typing import Annotated

from fastapi import Depends, Request

from core.services.echo_service import EchoService


def get_echo_service(request: Request) -> EchoService:
    """
    Get the EchoService instance.

    One instance is shared by all requests; it holds no mutable state.
    """
    return request.app.state.echo_service


# Type aliases for dependency injection
EchoServiceDep = Annotated[EchoService, Depends(get_echo_service)]
