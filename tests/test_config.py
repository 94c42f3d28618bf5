"""Server Configuration — verifies settings defaults, env overrides and each option.

Invariants:
    - Each with_* option sets exactly its own field
    - Options apply in order; the last one wins
    - Out-of-range ports and unknown modes are rejected when the option is built
"""

import pytest
from starlette.responses import Response

from transport_kit.config import (
    Mode,
    ServerConfig,
    build_config,
    get_settings,
    with_auth_middleware,
    with_cors_middleware,
    with_host,
    with_mode,
    with_permission_middleware,
    with_port,
)
from transport_kit.core.errors import ConfigurationError


@pytest.mark.parametrize("host", ["localhost", "0.0.0.0", ""])
def test_with_host_sets_host(host):
    cfg = ServerConfig()
    with_host(host)(cfg)
    assert cfg.host == host


@pytest.mark.parametrize("port", [8080, 3000, 0, 65535])
def test_with_port_sets_port(port):
    cfg = ServerConfig()
    with_port(port)(cfg)
    assert cfg.port == port


@pytest.mark.parametrize("port", [-1, 65536])
def test_with_port_rejects_out_of_range(port):
    with pytest.raises(ConfigurationError) as exc_info:
        with_port(port)
    assert exc_info.value.option == "port"


@pytest.mark.parametrize("mode", [Mode.PROD, Mode.DEV, Mode.TEST])
def test_with_mode_sets_mode(mode):
    cfg = ServerConfig()
    with_mode(mode)(cfg)
    assert cfg.mode is mode


def test_with_mode_accepts_string_value():
    cfg = ServerConfig()
    with_mode("dev")(cfg)
    assert cfg.mode is Mode.DEV


def test_with_mode_rejects_unknown_mode():
    with pytest.raises(ConfigurationError, match="staging"):
        with_mode("staging")


def test_with_auth_middleware_sets_only_auth():
    calls = []

    def auth():
        calls.append("auth")

    cfg = ServerConfig()
    with_auth_middleware(auth)(cfg)

    assert cfg.auth_middleware is auth
    assert cfg.permission_middleware is None
    assert cfg.cors_middleware is None
    cfg.auth_middleware()
    assert calls == ["auth"]


def test_with_permission_middleware_sets_only_permission():
    def permission():
        return None

    cfg = ServerConfig()
    with_permission_middleware(permission)(cfg)

    assert cfg.permission_middleware is permission
    assert cfg.auth_middleware is None


def test_with_cors_middleware_sets_only_cors():
    async def cors(request, call_next):
        return Response()

    cfg = ServerConfig()
    with_cors_middleware(cors)(cfg)

    assert cfg.cors_middleware is cors
    assert cfg.auth_middleware is None


def test_defaults_come_from_settings(monkeypatch):
    monkeypatch.delenv("TRANSPORT_MODE", raising=False)
    get_settings.cache_clear()

    cfg = ServerConfig()

    assert cfg.host == "localhost"
    assert cfg.port == 8080
    assert cfg.mode is Mode.PROD


def test_env_overrides_settings(monkeypatch):
    monkeypatch.setenv("TRANSPORT_HOST", "0.0.0.0")
    monkeypatch.setenv("TRANSPORT_PORT", "9090")
    monkeypatch.setenv("TRANSPORT_MODE", "dev")
    monkeypatch.setenv("TRANSPORT_API_PREFIX", "/api/v2")
    get_settings.cache_clear()

    settings = get_settings()
    cfg = ServerConfig()

    assert settings.api_prefix == "/api/v2"
    assert cfg.address == "0.0.0.0:9090"
    assert cfg.mode is Mode.DEV


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_build_config_applies_options_in_order():
    cfg = build_config(with_port(3000), with_host("a"), with_port(4000))
    assert cfg.port == 4000
    assert cfg.host == "a"


def test_build_config_without_options_uses_defaults():
    cfg = build_config()
    assert cfg.port == get_settings().port
    assert cfg.auth_middleware is None
