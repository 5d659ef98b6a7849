"""Wren application class.

Mutable during setup (route registration, middleware, error handlers).
Frozen at runtime when app.run() or __call__() is first invoked.
"""

import inspect
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import partial
from typing import Any

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.types import ErrorHandler, Handler, Hook
from wren.config import AppConfig
from wren.data.database import Database
from wren.errors import ConfigurationError
from wren.middleware.builtin import CORSConfig, CORSMiddleware
from wren.middleware.https import HTTPSRedirectMiddleware
from wren.middleware.protocol import Middleware
from wren.middleware.rate_limit import RateLimitMiddleware
from wren.routing.route import Route
from wren.routing.router import Router
from wren.security.rate_limit import WindowStore
from wren.security.service import Security
from wren.server.errors import handle_http_error
from wren.server.handler import handle_request

logger = logging.getLogger("wren.server")


class App:
    """The wren application.

    Mutable during setup (route registration, middleware, error handlers).
    Frozen at runtime when ``app.run()`` or ``__call__()`` is first invoked.

    Usage::

        app = App(AppConfig.from_env())

        @app.get("/users/:id")
        async def show(ctx):
            user = await ctx.db.table("users").where("id", ctx.params["id"]).first()
            return ctx.success(user) if user else ctx.error("User not found", 404)

        def admin(app):
            app.delete("/users/:id", delete_user)

        app.group("/admin", admin)

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread compiles the app.
    """

    __slots__ = (
        "_db",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_router",
        "_security",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        db: Database | str | None = None,
        security: Security | None = None,
        rate_limit_store: WindowStore | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._router = Router()
        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._startup_hooks: list[Hook] = []
        self._shutdown_hooks: list[Hook] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Database: an instance, a URL, or config.database_url
        if isinstance(db, str):
            db = Database(db)
        elif db is None and self.config.database_url:
            db = Database(self.config.database_url)
        self._db: Database | None = db

        self._security: Security = security or Security.from_config(
            self.config, store=rate_limit_store
        )

        # Compiled state, set during _freeze()
        self._middleware: tuple[Callable[..., Any], ...] = ()

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. Use ``:name`` for path parameters.
            methods: HTTP methods. Defaults to ``["GET"]``.
            name: Optional route name, shown by ``wren routes``.
        """

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            for method in methods or ["GET"]:
                self._router.add(method, path, func, name=name)
            return func

        return decorator

    def _register(self, method: str, path: str, handler: Handler | None) -> Any:
        if handler is not None:
            self._check_not_frozen()
            self._router.add(method, path, handler)
            return handler
        return self.route(path, methods=[method])

    def get(self, path: str, handler: Handler | None = None) -> Any:
        """Register a GET route, directly or as a decorator."""
        return self._register("GET", path, handler)

    def post(self, path: str, handler: Handler | None = None) -> Any:
        """Register a POST route, directly or as a decorator."""
        return self._register("POST", path, handler)

    def put(self, path: str, handler: Handler | None = None) -> Any:
        """Register a PUT route, directly or as a decorator."""
        return self._register("PUT", path, handler)

    def delete(self, path: str, handler: Handler | None = None) -> Any:
        """Register a DELETE route, directly or as a decorator."""
        return self._register("DELETE", path, handler)

    @contextmanager
    def prefix(self, prefix: str) -> Iterator["App"]:
        """Register every route inside the block under *prefix*::

            with app.prefix("/api"):
                app.get("/users", list_users)   # GET /api/users
        """
        self._check_not_frozen()
        with self._router.prefix(prefix):
            yield self

    def group(self, prefix: str, register: Callable[["App"], Any]) -> None:
        """Run ``register(app)`` with *prefix* active. Groups nest."""
        with self.prefix(prefix):
            register(self)

    @property
    def routes(self) -> list[Route]:
        """Registered routes, in match order."""
        return self._router.routes

    @property
    def router(self) -> Router:
        return self._router

    # -- Shared collaborators --

    @property
    def db(self) -> Database:
        """The database instance, if configured.

        Raises ``ConfigurationError`` if no database was configured.
        """
        if self._db is None:
            msg = (
                "No database configured. Pass db= to App() or set DATABASE_URL."
            )
            raise ConfigurationError(msg)
        return self._db

    @property
    def security(self) -> Security:
        return self._security

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator.

        The handler may take ``()``, ``(request)`` or ``(request, exc)``
        and may return a ``Response`` or a JSON-serializable value::

            @app.error(404)
            def not_found(request):
                return json_response({"success": False, "message": "Nothing here"}, 404)
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline, after the built-in ones."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Lifecycle hooks --

    def on_startup(self, func: Hook) -> Hook:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        after the database is connected.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Hook) -> Hook:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order during ASGI lifespan shutdown,
        before the database is disconnected.
        """
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Server --

    def run(
        self,
        host: str | None = None,
        port: int | None = None,
        *,
        reload: bool = False,
        app_path: str | None = None,
    ) -> None:
        """Compile the app and serve it with uvicorn.

        Args:
            host: Override bind host.
            port: Override bind port.
            reload: Restart on source changes (needs ``app_path``).
            app_path: ``"module:attribute"`` import string for reload.
        """
        self._ensure_frozen()

        from wren.server.dev import run_server

        _host = host or self.config.host
        _port = port or self.config.port
        logger.info("Serving %d routes on http://%s:%d", len(self.routes), _host, _port)
        run_server(
            self,
            _host,
            _port,
            reload=reload,
            app_path=app_path,
            log_level=self.config.log_level,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles the lifespan scope directly, then delegates HTTP scopes
        to the request handler pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            base_path=self.config.base_path,
            db=self._db,
            security=self._security,
            client_key_header=self.config.rate_limit_key_header,
            debug=self.config.debug,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before the first HTTP request),
        connects the database, runs startup/shutdown hooks, and signals
        completion back to the server.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    if self._db is not None:
                        await self._db.connect()
                    for hook in self._startup_hooks:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                if self._db is not None:
                    await self._db.disconnect()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        cfg = self.config

        # 1. Route table is closed to registration
        self._router.compile()

        # 2. Built-in middleware, outermost first: HTTPS -> CORS -> rate limit
        middleware_list: list[Callable[..., Any]] = []
        if cfg.redirect_to_https:
            middleware_list.append(HTTPSRedirectMiddleware())
        middleware_list.append(
            CORSMiddleware(
                CORSConfig(allow_origins=cfg.cors_origins),
                render_error=partial(handle_http_error, error_handlers=self._error_handlers),
            )
        )
        if cfg.rate_limit_enabled:
            middleware_list.append(
                RateLimitMiddleware(self._security.limiter, key_header=cfg.rate_limit_key_header)
            )
        middleware_list.extend(self._middleware_list)
        self._middleware = tuple(middleware_list)

        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and hooks before calling app.run()."
            )
            raise ConfigurationError(msg)
