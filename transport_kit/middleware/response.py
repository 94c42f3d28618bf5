"""Response Helpers — build envelope responses for handlers.

Invariants:
    - Success responses are 200 with {data} or {data, meta}
    - fail() maps code -1 to HTTP 500 and every other code to HTTP 400
    - Error responses never carry data
"""

from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse

from transport_kit.schemas.envelope import Envelope, ErrorBody

INTERNAL_ERROR_CODE = -1


def ok(data: Any) -> JSONResponse:
    return _respond(status.HTTP_200_OK, Envelope(data=data))


def with_meta(data: Any, meta: Any) -> JSONResponse:
    return _respond(status.HTTP_200_OK, Envelope(data=data, meta=meta))


def fail(code: int, message: str) -> JSONResponse:
    """Error envelope; code is the application error code, not the HTTP status."""
    if code == INTERNAL_ERROR_CODE:
        http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        http_status = status.HTTP_400_BAD_REQUEST
    return _respond(
        http_status, Envelope(error=ErrorBody(code=code, message=message)),
    )


def _respond(http_status: int, envelope: Envelope) -> JSONResponse:
    return JSONResponse(status_code=http_status, content=envelope.to_content())
