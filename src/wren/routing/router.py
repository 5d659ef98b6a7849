"""Ordered route table with ``:name`` path segments.

Routes are matched in registration order; the first route whose method
and pattern both match wins. Registration happens during setup and the
table is frozen when the app starts serving.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from wren.errors import ConfigurationError, NotFound
from wren.routing.pattern import compile_path
from wren.routing.route import Route, RouteMatch


def join_path(prefixes: list[str], path: str) -> str:
    """Concatenate the active prefixes with a route path.

    Examples::

        join_path([], "/users")               -> "/users"
        join_path(["/api"], "/users")         -> "/api/users"
        join_path(["/api", "/v1"], "/users")  -> "/api/v1/users"
        join_path(["/api"], "/")              -> "/api"
    """
    if not path.startswith("/"):
        path = "/" + path
    head = "".join("/" + p.strip("/") for p in prefixes if p.strip("/"))
    if head and path == "/":
        return head
    return head + path


def strip_base_path(path: str, base: str) -> str:
    """Remove the deployment base path from a request path.

    The base is only removed on a segment boundary, so a base of
    ``/api`` leaves ``/apikeys`` alone. An empty result becomes ``/``.
    """
    base = base.rstrip("/")
    if not base:
        return path or "/"
    if path == base:
        return "/"
    if path.startswith(base + "/"):
        return path[len(base) :]
    return path or "/"


class Router:
    """Ordered route table.

    Usage::

        router = Router()
        router.get("/users/:id", show_user)
        with router.prefix("/admin"):
            router.delete("/users/:id", delete_user)
        router.compile()
        match = router.match("GET", "/users/42")
    """

    __slots__ = ("_compiled", "_prefixes", "_routes")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._prefixes: list[str] = []
        self._compiled = False

    # -- Registration --

    def add(
        self,
        method: str,
        path: str,
        handler: Callable[..., Any],
        *,
        name: str | None = None,
    ) -> Route:
        """Add a route under the active prefixes. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise ConfigurationError(msg)

        full_path = join_path(self._prefixes, path)
        route = Route(
            method=method.upper(),
            path=full_path,
            matcher=compile_path(full_path),
            handler=handler,
            name=name,
        )
        self._routes.append(route)
        return route

    def _register(self, method: str, path: str, handler: Callable[..., Any] | None) -> Any:
        if handler is not None:
            self.add(method, path, handler)
            return handler

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.add(method, path, func)
            return func

        return decorator

    def get(self, path: str, handler: Callable[..., Any] | None = None) -> Any:
        """Register a GET route, directly or as a decorator."""
        return self._register("GET", path, handler)

    def post(self, path: str, handler: Callable[..., Any] | None = None) -> Any:
        """Register a POST route, directly or as a decorator."""
        return self._register("POST", path, handler)

    def put(self, path: str, handler: Callable[..., Any] | None = None) -> Any:
        """Register a PUT route, directly or as a decorator."""
        return self._register("PUT", path, handler)

    def delete(self, path: str, handler: Callable[..., Any] | None = None) -> Any:
        """Register a DELETE route, directly or as a decorator."""
        return self._register("DELETE", path, handler)

    @contextmanager
    def prefix(self, prefix: str) -> Iterator[None]:
        """Register every route inside the block under *prefix*.

        Prefixes nest. The prefix is popped even if the block raises.
        """
        self._prefixes.append(prefix)
        try:
            yield
        finally:
            self._prefixes.pop()

    def group(self, prefix: str, register: Callable[["Router"], Any]) -> None:
        """Run ``register(router)`` with *prefix* active."""
        with self.prefix(prefix):
            register(self)

    # -- Introspection --

    @property
    def routes(self) -> list[Route]:
        """All registered routes, in registration order."""
        return list(self._routes)

    @property
    def is_compiled(self) -> bool:
        return self._compiled

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    # -- Matching --

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request method and path against the table.

        Returns a ``RouteMatch`` on success. Raises ``NotFound`` when no
        route matches, including when only the method differs.
        """
        method = method.upper()
        for route in self._routes:
            if route.method != method:
                continue
            params = route.matcher.match(path)
            if params is not None:
                return RouteMatch(route=route, path_params=params, path=path)

        raise NotFound(f"Not Found: {path}")
