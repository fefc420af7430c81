# =============================================================================
# core/models/echo.py - Echo Schemas
# =============================================================================
# These models define the API contract for POST /v1/echo:
# - EchoRequest: What the client sends
# - EchoResponse: The same pair, reflected back
#
# Both fields are required and non-empty. Emptiness is checked by the HTTP
# handler, not by the model, so that a missing field and a malformed body
# produce different error messages.
# =============================================================================

from pydantic import BaseModel, Field


class EchoRequest(BaseModel):
    """
    Message/author pair sent by the client.

    Unknown keys are ignored. An absent or null field decodes to None and is
    treated the same as an empty string.
    """
    message: str | None = Field(
        default=None,
        examples=["Hello, World!"],
        description="Text to echo back"
    )
    author: str | None = Field(
        default=None,
        examples=["Alice"],
        description="Who wrote the message"
    )

    def has_required_fields(self) -> bool:
        """True when both message and author are non-empty."""
        return bool(self.message) and bool(self.author)


class EchoResponse(BaseModel):
    """The validated request, unchanged."""
    message: str
    author: str
