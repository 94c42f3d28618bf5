"""Envelope Schema — data/error exclusivity and wire-format omission rules."""

from datetime import date

import pytest
from pydantic import ValidationError

from transport_kit.schemas.envelope import Envelope, ErrorBody, FieldError


def test_data_and_error_together_rejected():
    with pytest.raises(ValidationError):
        Envelope(data={"id": 1}, error=ErrorBody(code=1, message="bad"))


def test_empty_envelope_serializes_to_empty_object():
    assert Envelope().to_content() == {}


def test_none_inside_data_is_preserved():
    env = Envelope(data={"id": 1, "deleted_at": None})
    assert env.to_content() == {"data": {"id": 1, "deleted_at": None}}


def test_data_is_json_encoded():
    env = Envelope(data={"day": date(2024, 1, 2)})
    assert env.to_content() == {"data": {"day": "2024-01-02"}}


def test_error_with_meta():
    env = Envelope(error=ErrorBody(code=7, message="nope"), meta={"trace": "t"})
    assert env.to_content() == {
        "error": {"code": 7, "message": "nope"},
        "meta": {"trace": "t"},
    }


def test_error_body_requires_integer_code():
    with pytest.raises(ValidationError):
        ErrorBody(code="not-a-number", message="x")


def test_field_error_shape():
    assert FieldError(field="email", message="missing").model_dump() == {
        "field": "email", "message": "missing",
    }
