"""Error Hierarchy — verifies codes, HTTP statuses and client bodies of every error."""

import pytest

from transport_kit.core.errors import (
    ConfigurationError,
    RequestBindingError,
    RequestMissingError,
    RequestTypeError,
    RequestValidationFailed,
    ServerStartError,
    ShutdownTimeoutError,
    TransportError,
    UriNotFoundError,
)


def test_base_error_response_shape():
    err = TransportError("boom", "BOOM", 418)
    assert err.http_status == 418
    assert str(err) == "boom"
    assert err.to_response() == {"error": {"code": "BOOM", "message": "boom"}}


@pytest.mark.parametrize(
    "error,status,body",
    [
        (RequestBindingError(), 400, {"error": {"message": "Invalid request data"}}),
        (UriNotFoundError(), 404, {"error": "Not found"}),
        (RequestMissingError(), 400, {"error": "Request not found"}),
        (RequestMissingError(http_status=404), 404, {"error": "Request not found"}),
        (RequestTypeError(int, str), 400, {"error": "Invalid type of request"}),
    ],
)
def test_request_error_bodies(error, status, body):
    assert isinstance(error, TransportError)
    assert error.http_status == status
    assert error.to_response() == body


def test_validation_failed_body_is_detail_list():
    details = [{"field": "email", "message": "missing"}]
    err = RequestValidationFailed(details)
    assert err.http_status == 422
    assert err.to_response() == details
    assert "1 field" in err.message


def test_server_errors_carry_context():
    assert ConfigurationError("bad", "port").option == "port"
    assert ServerStartError("localhost:80").address == "localhost:80"
    assert "2.5s" in ShutdownTimeoutError(2.5).message
