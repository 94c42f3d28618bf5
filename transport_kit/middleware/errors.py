"""Validation Errors — detect model validation failures and render them as 422 lists.

Invariants:
    - The 422 body is a JSON list of {"field", "message"}, one item per failed rule
    - field is the dotted location inside the payload (no "body"/"query" prefix)
    - message is the failed rule identifier (e.g. "missing", "string_too_short")
"""

from typing import Any

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from transport_kit.schemas.envelope import FieldError

_REQUEST_SOURCES = {"body", "query", "path", "header", "cookie"}


def is_validation_error(
    exc: BaseException | None,
) -> tuple[bool, ValidationError | None]:
    """Return (True, error) if exc or anything it was raised from is a ValidationError."""
    seen: set[int] = set()
    while exc is not None and id(exc) not in seen:
        if isinstance(exc, ValidationError):
            return True, exc
        seen.add(id(exc))
        exc = exc.__cause__ or exc.__context__
    return False, None


def field_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    out = []
    for e in errors:
        loc = list(e.get("loc", ()))
        if len(loc) > 1 and loc[0] in _REQUEST_SOURCES:
            loc = loc[1:]
        out.append(FieldError(
            field=".".join(str(part) for part in loc),
            message=e["type"],
        ).model_dump())
    return out


def validation_error_response(
    exc: ValidationError | RequestValidationError,
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=field_errors(exc.errors()),
    )
