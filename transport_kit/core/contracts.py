"""Contracts — route descriptors and the handler protocol consumed by registration.

Invariants:
    - A Route is plain data: no framework objects are created until registration
    - middlewares run in list order, before the handler
    - Handler is structural: any object with get_routes() qualifies

Design Decisions:
    - Protocol over ABC: handlers are registered without inheriting from us
    - Verbs normalized to upper case at construction so lookups stay exact
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

Endpoint = Callable[..., Any]
Dependency = Callable[..., Any]

SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


@dataclass
class Route:
    """A single endpoint to register under the API prefix."""
    uri: str
    method: str
    handler: Endpoint
    is_auth_protected: bool = False
    middlewares: list[Dependency] = field(default_factory=list)

    def __post_init__(self):
        self.method = self.method.upper()
        if not self.uri.startswith("/"):
            self.uri = "/" + self.uri

    @property
    def is_supported(self) -> bool:
        return self.method in SUPPORTED_METHODS


class Handler(Protocol):
    """Anything that can describe the routes it serves."""
    def get_routes(self) -> list[Route]: ...
