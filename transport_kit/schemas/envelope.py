"""Envelope Schemas — Pydantic models for the uniform JSON response shape.

Invariants:
    - Envelope never carries both data and error
    - None members are omitted from the wire format (data, error, meta are optional)
    - ErrorBody.code is an application code, not the HTTP status

Design Decisions:
    - to_content() builds the dict by hand: data/meta are arbitrary payloads and
      must keep their own None values, only the envelope members are dropped
"""

from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, model_validator


class ErrorBody(BaseModel):
    """Error payload inside an envelope."""
    code: int
    message: str


class FieldError(BaseModel):
    """One failed field in a validation response."""
    field: str
    message: str


class Envelope(BaseModel):
    """Uniform response: {data?, error?, meta?}."""
    data: Any = None
    error: ErrorBody | None = None
    meta: Any = None

    @model_validator(mode="after")
    def check_data_xor_error(self) -> "Envelope":
        if self.data is not None and self.error is not None:
            raise ValueError("envelope cannot carry both data and error")
        return self

    def to_content(self) -> dict[str, Any]:
        content: dict[str, Any] = {}
        if self.data is not None:
            content["data"] = jsonable_encoder(self.data)
        if self.error is not None:
            content["error"] = self.error.model_dump()
        if self.meta is not None:
            content["meta"] = jsonable_encoder(self.meta)
        return content
