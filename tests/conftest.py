"""Root conftest — shared test configuration.

Invariants:
    - Every test starts from freshly read settings (get_settings cache cleared)
    - Servers built in tests default to Mode.TEST unless a test overrides the env
"""

import os

# Quiet server logging and disable debug tracebacks during tests
os.environ.setdefault("TRANSPORT_MODE", "test")

import pytest
from httpx import ASGITransport, AsyncClient

from transport_kit.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def client_for():
    """Build an httpx client bound to an ASGI app (use with `async with`)."""
    def _client_for(app, raise_app_exceptions: bool = True) -> AsyncClient:
        return AsyncClient(
            transport=ASGITransport(
                app=app, raise_app_exceptions=raise_app_exceptions,
            ),
            base_url="http://test",
        )
    return _client_for


class RouteList:
    """Minimal Handler: serves a fixed list of routes."""

    def __init__(self, *routes):
        self.routes = list(routes)

    def get_routes(self):
        return self.routes


@pytest.fixture
def route_list():
    return RouteList
