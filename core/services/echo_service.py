# =============================================================================
# core/services/echo_service.py - Echo Business Logic
# =============================================================================
# Reflects a validated message/author pair back to the caller.
# Separates HTTP concerns from the (trivial) business logic.
# =============================================================================

import logging

from core.models.echo import EchoRequest, EchoResponse


class EchoService:
    """
    Service for the echo operation.

    Holds only an immutable logger reference, so a single instance is safe to
    share across concurrent requests.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def echo(self, request: EchoRequest) -> EchoResponse:
        """
        Return the request's message and author unchanged.

        Callers must check that both fields are non-empty first.

        Args:
            request: The decoded echo request

        Returns:
            EchoResponse with the same message and author
        """
        self._logger.info(
            "Processing echo request",
            extra={"echo_message": request.message, "author": request.author},
        )

        return EchoResponse(message=request.message, author=request.author)
