"""Transport Server — FastAPI application plus uvicorn listener, configured by options.

Invariants:
    - Options are applied once, at construction; the FastAPI app is built from the result
    - The CORS hook is the outermost middleware; request logging sits inside it
    - Routes live under api_prefix; protected routes run auth, then permission,
      then the route's own middlewares, then the handler
    - The not-found fallback is always the last route, across repeated register_handlers calls
    - The uvicorn server handle is only read or written under _lock

Design Decisions:
    - Route middlewares and auth/permission hooks are FastAPI dependencies: raising
      aborts the chain, returning continues it
    - The fallback is a catch-all route rather than a 404 handler, so a handler's own
      404 keeps its body and an unmatched verb answers 404 like an unmatched path
    - Because the fallback always matches, it does the trailing-slash redirect
      itself: 307 to the toggled path when another route fully matches it
    - Mode.DEV turns on FastAPI debug, which renders tracebacks instead of the
      catch-all error envelope
"""

import logging
import threading
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.routing import APIRoute
from starlette.datastructures import URL
from starlette.routing import Match

from transport_kit.api.error_handlers import register_error_handlers
from transport_kit.config import Mode, Option, build_config, get_settings
from transport_kit.core.contracts import Handler, Route
from transport_kit.core.errors import ServerStartError, ShutdownTimeoutError
from transport_kit.infrastructure.observability import setup_logging
from transport_kit.middleware.cors import cors_middleware
from transport_kit.middleware.request_logging import log_requests

logger = logging.getLogger(__name__)

_FALLBACK_METHODS = [
    "GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE",
]


async def not_found(request: Request) -> Response:
    redirect = _trailing_slash_redirect(request)
    if redirect is not None:
        return redirect
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND, content={"message": "Not found"},
    )


def _trailing_slash_redirect(request: Request) -> RedirectResponse | None:
    """Redirect to the same path with the trailing slash toggled, if a route serves it."""
    path = request.scope["path"]
    toggled = path.rstrip("/") if path.endswith("/") else path + "/"
    if not toggled or toggled == "/":
        return None

    scope = dict(request.scope)
    scope["path"] = toggled
    for route in request.app.router.routes:
        if getattr(route, "endpoint", None) is not_found:
            continue
        match, _ = route.matches(scope)
        if match == Match.FULL:
            return RedirectResponse(url=str(URL(scope=scope)))
    return None


class TransportServer:
    """HTTP server wrapping a FastAPI app; routes come from Handler objects."""

    def __init__(self, *options: Option):
        self._settings = get_settings()
        self.cfg = build_config(*options)
        if self.cfg.cors_middleware is None:
            self.cfg.cors_middleware = cors_middleware()

        self.engine = FastAPI(
            title="transport-kit",
            debug=self.cfg.mode == Mode.DEV,
            lifespan=self._lifespan,
        )
        if self._settings.log_requests:
            self.engine.middleware("http")(log_requests)
        self.engine.middleware("http")(self.cfg.cors_middleware)
        register_error_handlers(self.engine)

        self._fallback: APIRoute | None = None
        self._server: uvicorn.Server | None = None
        self._done = threading.Event()
        self._lock = threading.Lock()

    @property
    def address(self) -> str:
        return self.cfg.address

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._server is not None and self._server.started

    def get_engine(self) -> FastAPI:
        return self.engine

    # ─── Routing ────────────────────────────────────────────────

    def register_handlers(self, *handlers: Handler) -> None:
        """Register every route of every handler under the API prefix."""
        api_group = APIRouter()
        protected_group = APIRouter(dependencies=self._protected_dependencies())

        registered = 0
        for handler in handlers:
            for route in handler.get_routes():
                if not route.is_supported:
                    logger.warning(
                        f"Skipping route {route.method} {route.uri}: unsupported method",
                        extra={"route": route.uri, "method": route.method},
                    )
                    continue
                group = protected_group if route.is_auth_protected else api_group
                self._add_route(group, route)
                registered += 1

        prefix = self._settings.api_prefix
        self._remove_fallback()
        self.engine.include_router(api_group, prefix=prefix)
        self.engine.include_router(protected_group, prefix=prefix)
        self._install_fallback()
        logger.debug(f"Registered {registered} route(s) under {prefix or '/'}")

    def _protected_dependencies(self) -> list:
        deps = []
        if self.cfg.auth_middleware is not None:
            deps.append(Depends(self.cfg.auth_middleware))
        if self.cfg.permission_middleware is not None:
            deps.append(Depends(self.cfg.permission_middleware))
        return deps

    @staticmethod
    def _add_route(group: APIRouter, route: Route) -> None:
        group.add_api_route(
            route.uri,
            route.handler,
            methods=[route.method],
            dependencies=[Depends(m) for m in route.middlewares],
        )

    def _install_fallback(self) -> None:
        self._fallback = APIRoute(
            "/{fallback_path:path}", not_found,
            methods=_FALLBACK_METHODS, include_in_schema=False,
        )
        self.engine.router.routes.append(self._fallback)

    def _remove_fallback(self) -> None:
        if self._fallback is not None and self._fallback in self.engine.router.routes:
            self.engine.router.routes.remove(self._fallback)
        self._fallback = None

    # ─── Lifecycle ──────────────────────────────────────────────

    def start(self) -> None:
        """Serve until stop() is called. Blocks the calling thread."""
        server = self._build_server()
        try:
            server.run()
        except SystemExit as exc:
            raise ServerStartError(self.address) from exc
        finally:
            self._release(server)

    async def serve(self) -> None:
        """Serve on the running event loop until stop() is called."""
        server = self._build_server()
        try:
            await server.serve()
        except SystemExit as exc:
            raise ServerStartError(self.address) from exc
        finally:
            self._release(server)

    def stop(self, timeout: float | None = None) -> None:
        """Ask the server to exit; with a timeout, wait for it to finish.

        Callers on the server's own event loop must not pass a timeout.
        """
        with self._lock:
            server = self._server
            done = self._done

        if server is None:
            return

        server.should_exit = True
        if timeout is None:
            return
        if not done.wait(timeout):
            server.force_exit = True
            logger.error(
                f"Server on {self.address} did not stop within {timeout:g}s",
                extra={"error_code": "SHUTDOWN_TIMEOUT"},
            )
            raise ShutdownTimeoutError(timeout)

    def _build_server(self) -> uvicorn.Server:
        config = uvicorn.Config(
            self.engine,
            host=self.cfg.host,
            port=self.cfg.port,
            log_level=self._log_level().lower(),
            log_config=None,
            access_log=self.cfg.mode != Mode.TEST,
            timeout_keep_alive=self._settings.keep_alive_timeout,
        )
        with self._lock:
            if self._server is not None:
                logger.error(f"Server on {self.address} is already running")
                raise ServerStartError(self.address)
            self._server = uvicorn.Server(config)
            self._done = threading.Event()
            return self._server

    def _release(self, server: uvicorn.Server) -> None:
        with self._lock:
            if self._server is server:
                self._server = None
            self._done.set()

    def _log_level(self) -> str:
        if self.cfg.mode == Mode.DEV:
            return "DEBUG"
        if self.cfg.mode == Mode.TEST:
            return "WARNING"
        return self._settings.log_level

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        setup_logging(self._log_level(), self._settings.log_format)
        logger.info(f"Transport server started on {self.address} ({self.cfg.mode.value})")
        yield
        logger.info(f"Transport server on {self.address} shutting down")
