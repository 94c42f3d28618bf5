"""Request Binding — generic bind-and-validate dependencies with a per-request stash.

Invariants:
    - A failed bind raises before the handler runs (the chain is aborted)
    - Body binding picks its source by verb and content type:
      GET/HEAD -> query string, application/json -> JSON body,
      anything else -> query string merged with form fields
    - Body and URI bindings are stashed under separate keys on request.state
    - get_request / get_uri_request never return None: they return the model or raise

Design Decisions:
    - Dependencies return the bound model as well as stashing it, so a route can
      list them in Route.middlewares or take them as a Depends(...) parameter
    - Undecodable payloads (bad JSON, non-object JSON) are 400, and so is any value
      of the wrong type (a *_parsing or *_type error): decoding fails before rules
      are checked. Only rule failures (missing, bounds, patterns) are 422
    - Query and form keys keep every value for list-typed fields, one value otherwise
    - The stash lookup wants the exact model class, not a subclass
"""

import json
import logging
from typing import Any, Callable, Coroutine, TypeVar, get_origin

from pydantic import BaseModel, ValidationError
from starlette.datastructures import ImmutableMultiDict
from starlette.requests import Request

from transport_kit.core.errors import (
    RequestBindingError,
    RequestMissingError,
    RequestTypeError,
    RequestValidationFailed,
    UriNotFoundError,
)
from transport_kit.middleware.errors import field_errors

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_REQUEST_KEY = "transport_request"
_URI_REQUEST_KEY = "transport_uri_request"

_QUERY_METHODS = {"GET", "HEAD"}
_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
_SEQUENCE_TYPES = (list, set, frozenset, tuple)


def is_decoding_error(exc: ValidationError) -> bool:
    """True when a value could not be converted to its field's type."""
    return any(
        err["type"].endswith(("_parsing", "_type"))
        for err in exc.errors()
    )


def bind_and_validate(
    model: type[T],
) -> Callable[[Request], Coroutine[Any, Any, T]]:
    """Build a dependency that binds the request payload into model."""

    async def dependency(request: Request) -> T:
        payload = await _read_payload(request, model)
        try:
            bound = model.model_validate(payload)
        except ValidationError as exc:
            if is_decoding_error(exc):
                logger.debug(
                    f"Binding failed on {request.url.path}: wrong value type",
                    extra={"path": request.url.path, "error_code": "INVALID_REQUEST_DATA"},
                )
                raise RequestBindingError() from exc
            logger.debug(
                f"Validation failed on {request.url.path}: {exc.error_count()} error(s)",
                extra={"path": request.url.path, "error_code": "VALIDATION_ERROR"},
            )
            raise RequestValidationFailed(field_errors(exc.errors())) from exc

        setattr(request.state, _REQUEST_KEY, bound)
        return bound

    dependency.__name__ = f"bind_{model.__name__}"
    return dependency


def bind_and_validate_uri(
    model: type[T],
) -> Callable[[Request], Coroutine[Any, Any, T]]:
    """Build a dependency that binds path parameters into model; any failure is a 404."""

    async def dependency(request: Request) -> T:
        try:
            bound = model.model_validate(dict(request.path_params))
        except ValidationError as exc:
            logger.debug(
                f"URI binding failed on {request.url.path}",
                extra={"path": request.url.path, "error_code": "NOT_FOUND"},
            )
            raise UriNotFoundError() from exc

        setattr(request.state, _URI_REQUEST_KEY, bound)
        return bound

    dependency.__name__ = f"bind_uri_{model.__name__}"
    return dependency


def get_request(request: Request, model: type[T]) -> T:
    """Return the body model stored by bind_and_validate."""
    return _get_stashed(request, _REQUEST_KEY, model, missing_status=400)


def get_uri_request(request: Request, model: type[T]) -> T:
    """Return the path model stored by bind_and_validate_uri."""
    return _get_stashed(request, _URI_REQUEST_KEY, model, missing_status=404)


def _get_stashed(
    request: Request, key: str, model: type[T], missing_status: int,
) -> T:
    value = getattr(request.state, key, None)
    if value is None:
        raise RequestMissingError(http_status=missing_status)
    if type(value) is not model:
        raise RequestTypeError(expected=model, actual=type(value))
    return value


async def _read_payload(request: Request, model: type[BaseModel]) -> dict[str, Any]:
    list_keys = _list_keys(model)
    if request.method in _QUERY_METHODS:
        return _flatten(request.query_params, list_keys)

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        return await _read_json(request)

    payload = _flatten(request.query_params, list_keys)
    if content_type.startswith(_FORM_TYPES):
        try:
            form = await request.form()
        except Exception as exc:
            raise RequestBindingError() from exc
        payload.update(_flatten(form, list_keys))
    return payload


def _list_keys(model: type[BaseModel]) -> set[str]:
    keys = set()
    for name, field in model.model_fields.items():
        if get_origin(field.annotation) in _SEQUENCE_TYPES:
            keys.add(name)
            if field.alias:
                keys.add(field.alias)
    return keys


async def _read_json(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise RequestBindingError() from exc
    if not isinstance(payload, dict):
        raise RequestBindingError()
    return payload


def _flatten(values: ImmutableMultiDict, list_keys: set[str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in values.keys():
        items = values.getlist(key)
        out[key] = items if key in list_keys or len(items) > 1 else items[0]
    return out
