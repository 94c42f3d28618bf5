"""Error Hierarchy — typed exceptions for every way a request or server can be refused.

Invariants:
    - Every error has a code (str) and an http_status (int)
    - to_response() produces the exact JSON body sent to the client
    - Request-level errors (400/404/422) abort the chain before the handler runs
    - Server-level errors (configuration, start, shutdown) never reach a client

Design Decisions:
    - Single hierarchy with TransportError base: one global handler renders all of them
    - Body shapes differ per error on purpose: clients already parse
      {"error": {...}}, {"error": "..."} and validation lists
"""

from typing import Any


class TransportError(Exception):
    """Base exception for all transport-kit errors."""

    def __init__(self, message: str, code: str, http_status: int = 500):
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status

    def to_response(self) -> Any:
        """Convert to the JSON body returned to the client."""
        return {"error": {"code": self.code, "message": self.message}}


# ─── Request Errors (400-level) ─────────────────────────────────

class RequestBindingError(TransportError):
    """Request payload could not be decoded into the target model."""
    def __init__(self, message: str = "Invalid request data"):
        super().__init__(message, "INVALID_REQUEST_DATA", 400)

    def to_response(self) -> dict:
        return {"error": {"message": self.message}}


class RequestValidationFailed(TransportError):
    """Request payload decoded but failed model validation."""
    def __init__(self, details: list[dict[str, str]]):
        super().__init__(
            f"{len(details)} field(s) failed validation",
            "VALIDATION_ERROR", 422,
        )
        self.details = details

    def to_response(self) -> list[dict[str, str]]:
        return self.details


class UriNotFoundError(TransportError):
    """Path parameters did not bind; the resource is treated as absent."""
    def __init__(self):
        super().__init__("Not found", "NOT_FOUND", 404)

    def to_response(self) -> dict:
        return {"error": self.message}


class RequestMissingError(TransportError):
    """Handler asked for a bound request that no middleware stored."""
    def __init__(self, http_status: int = 400):
        super().__init__("Request not found", "REQUEST_NOT_FOUND", http_status)

    def to_response(self) -> dict:
        return {"error": self.message}


class RequestTypeError(TransportError):
    """Stored request is not an instance of the model the handler asked for."""
    def __init__(self, expected: type, actual: type):
        super().__init__(
            "Invalid type of request", "INVALID_REQUEST_TYPE", 400,
        )
        self.expected = expected
        self.actual = actual

    def to_response(self) -> dict:
        return {"error": self.message}


# ─── Server Errors ──────────────────────────────────────────────

class ConfigurationError(TransportError):
    """An option was given a value the server cannot use."""
    def __init__(self, message: str, option: str):
        super().__init__(message, "CONFIGURATION_ERROR", 500)
        self.option = option


class ServerStartError(TransportError):
    """Listener could not be started (bind failure, bad address)."""
    def __init__(self, address: str):
        super().__init__(
            f"Failed to start server on {address}",
            "SERVER_START_FAILED", 500,
        )
        self.address = address


class ShutdownTimeoutError(TransportError):
    """Graceful shutdown did not finish before the deadline."""
    def __init__(self, timeout: float):
        super().__init__(
            f"Server did not shut down within {timeout:g}s",
            "SHUTDOWN_TIMEOUT", 500,
        )
        self.timeout = timeout
