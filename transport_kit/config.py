"""Server Configuration — environment-driven settings plus functional options.

Invariants:
    - Settings come from TRANSPORT_* environment variables or .env (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Each with_* option sets exactly one ServerConfig field and nothing else
    - Options are applied in the order given; the last one wins

Design Decisions:
    - pydantic-settings for deployment values (host, port, mode, logging),
      options for code-level hooks that cannot come from the environment
    - Hooks default to None: the server substitutes pass-through auth and the
      built-in CORS hook, a missing permission hook is simply skipped
"""

from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Awaitable, Callable

from pydantic_settings import BaseSettings, SettingsConfigDict
from starlette.requests import Request
from starlette.responses import Response

from transport_kit.core.contracts import Dependency
from transport_kit.core.errors import ConfigurationError

HttpMiddleware = Callable[
    [Request, Callable[[Request], Awaitable[Response]]], Awaitable[Response],
]


class Mode(str, Enum):
    """Runtime mode — controls debug output and server log verbosity."""
    PROD = "prod"
    DEV = "dev"
    TEST = "test"


class Settings(BaseSettings):
    """Deployment settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSPORT_", env_file=".env", case_sensitive=False,
        extra="ignore",
    )

    # Listener
    host: str = "localhost"
    port: int = 8080
    mode: Mode = Mode.PROD
    keep_alive_timeout: int = 5

    # Routing
    api_prefix: str = "/api/v1"

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"
    log_requests: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()


@dataclass
class ServerConfig:
    """Resolved configuration for one TransportServer."""
    host: str = field(default_factory=lambda: get_settings().host)
    port: int = field(default_factory=lambda: get_settings().port)
    mode: Mode = field(default_factory=lambda: get_settings().mode)
    auth_middleware: Dependency | None = None
    permission_middleware: Dependency | None = None
    cors_middleware: HttpMiddleware | None = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


Option = Callable[[ServerConfig], None]


def with_host(host: str) -> Option:
    def apply(cfg: ServerConfig) -> None:
        cfg.host = host
    return apply


def with_port(port: int) -> Option:
    if not 0 <= port <= 65535:
        raise ConfigurationError(f"Port {port} is out of range 0-65535", "port")

    def apply(cfg: ServerConfig) -> None:
        cfg.port = port
    return apply


def with_mode(mode: Mode | str) -> Option:
    try:
        resolved = Mode(mode)
    except ValueError:
        allowed = ", ".join(m.value for m in Mode)
        raise ConfigurationError(
            f"Unknown mode {mode!r} (expected one of: {allowed})", "mode",
        )

    def apply(cfg: ServerConfig) -> None:
        cfg.mode = resolved
    return apply


def with_auth_middleware(middleware: Dependency) -> Option:
    """Dependency run before every auth-protected route."""
    def apply(cfg: ServerConfig) -> None:
        cfg.auth_middleware = middleware
    return apply


def with_permission_middleware(middleware: Dependency) -> Option:
    """Dependency run after auth on every auth-protected route."""
    def apply(cfg: ServerConfig) -> None:
        cfg.permission_middleware = middleware
    return apply


def with_cors_middleware(middleware: HttpMiddleware) -> Option:
    """HTTP middleware replacing the built-in CORS hook for all requests."""
    def apply(cfg: ServerConfig) -> None:
        cfg.cors_middleware = middleware
    return apply


def build_config(*options: Option) -> ServerConfig:
    cfg = ServerConfig()
    for option in options:
        option(cfg)
    return cfg
