"""Error Handlers — global exception handlers installed on every TransportServer app.

Invariants:
    - TransportError → its own to_response() body with its http_status
    - RequestValidationError → the same 422 field list bind_and_validate produces
    - Exception (catch-all) → 500 error envelope, never leaks internal details

Design Decisions:
    - Three-layer handler: library (TransportError), validation (FastAPI/Pydantic), catch-all
    - A ValidationError escaping a handler is still a client error (422), not a crash
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from transport_kit.core.errors import TransportError
from transport_kit.middleware.errors import (
    is_validation_error,
    validation_error_response,
)
from transport_kit.middleware.response import INTERNAL_ERROR_CODE, fail

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_transport_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_transport_error_handler(app: FastAPI) -> None:

    @app.exception_handler(TransportError)
    async def transport_error_handler(request: Request, exc: TransportError):
        logger.info(
            f"TransportError: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "status_code": exc.http_status,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
        )
        return validation_error_response(exc)


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        ok, ve = is_validation_error(exc)
        if ok:
            logger.warning(
                f"Unhandled validation error on {request.url.path}: {ve}",
                extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
            )
            return validation_error_response(ve)

        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
            extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
        )
        return fail(INTERNAL_ERROR_CODE, "An unexpected error occurred")
