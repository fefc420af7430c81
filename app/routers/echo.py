# =============================================================================
# app/routers/echo.py - Echo Endpoint
# =============================================================================
# POST /v1/echo reflects a {"message", "author"} pair.
#
# The body is decoded by hand instead of through a FastAPI body parameter so
# that failures map to this service's 400 bodies rather than FastAPI's 422:
# - undecodable body             -> 400 {"error": "Invalid JSON"}
# - empty/missing message/author -> 400 {"error": "Missing required fields: ..."}
# - response serialization fails -> 500 {"error": "Internal server error"}
# =============================================================================

from fastapi import APIRouter, Request, Response
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from app.dependencies import EchoServiceDep
from app.exceptions import EncodingError, InvalidJSONError, MissingFieldsError
from core.models.echo import EchoRequest

router = APIRouter()


@router.post("/v1/echo")
async def post_echo(request: Request, echo_service: EchoServiceDep):
    """
    Echo the message and author back to the caller.

    Raises:
        InvalidJSONError: Body is not a JSON object with string fields
        MissingFieldsError: message or author is empty
        EncodingError: Response could not be serialized
    """
    body = await request.body()

    try:
        echo_request = EchoRequest.model_validate_json(body)
    except ValidationError as e:
        raise InvalidJSONError(str(e)) from e

    if not echo_request.has_required_fields():
        raise MissingFieldsError()

    echo_response = echo_service.echo(echo_request)

    try:
        content = echo_response.model_dump_json()
    except PydanticSerializationError as e:
        raise EncodingError(str(e)) from e

    return Response(content=content, media_type="application/json")
