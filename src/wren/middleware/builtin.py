"""Built-in middleware: CORS.

Answers preflight ``OPTIONS`` requests directly and adds CORS headers to
every other response for allowed origins, including the failure
envelopes rendered from ``HTTPError`` (401, 404, 429, ...).
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeAlias

from wren.errors import HTTPError
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Next
from wren.server.errors import handle_http_error

ErrorRenderer: TypeAlias = Callable[[HTTPError, Request], Awaitable[Response]]


async def render_http_error(exc: HTTPError, request: Request) -> Response:
    """Render *exc* with no ``@app.error`` handlers registered."""
    return await handle_http_error(exc, request, {})


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS middleware configuration.

    Defaults suit a public JSON API (any origin, bearer auth)::

        CORSConfig(allow_origins=("https://example.com",))
    """

    allow_origins: tuple[str, ...] = ("*",)
    allow_methods: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
    allow_headers: tuple[str, ...] = ("Content-Type", "Authorization", "X-Requested-With")
    expose_headers: tuple[str, ...] = ("Retry-After",)
    allow_credentials: bool = False
    max_age: int = 600  # 10 minutes


class CORSMiddleware:
    """CORS middleware.

    Handles:
    - Preflight ``OPTIONS`` requests (204, never reaches the router)
    - Actual requests from allowed origins (CORS headers added)
    - Wildcard origins (``"*"``) when credentials are disabled
    - ``HTTPError`` raised further in, rendered here by *render_error*
      so the browser can read the failure envelope

    Usage::

        app.add_middleware(CORSMiddleware(CORSConfig(
            allow_origins=("https://example.com",),
        )))
    """

    __slots__ = ("config", "render_error")

    def __init__(
        self,
        config: CORSConfig | None = None,
        *,
        render_error: ErrorRenderer | None = None,
    ) -> None:
        self.config = config or CORSConfig()
        self.render_error = render_error or render_http_error

    def _is_allowed_origin(self, origin: str) -> bool:
        if "*" in self.config.allow_origins:
            return True
        return origin in self.config.allow_origins

    def _add_cors_headers(self, response: Response, origin: str) -> Response:
        cfg = self.config

        if "*" in cfg.allow_origins and not cfg.allow_credentials:
            response = response.with_header("Access-Control-Allow-Origin", "*")
        else:
            response = response.with_header("Access-Control-Allow-Origin", origin)
            response = response.with_header("Vary", "Origin")

        if cfg.allow_credentials:
            response = response.with_header("Access-Control-Allow-Credentials", "true")

        if cfg.expose_headers:
            response = response.with_header(
                "Access-Control-Expose-Headers",
                ", ".join(cfg.expose_headers),
            )
        return response

    def _preflight_response(self, origin: str | None) -> Response:
        cfg = self.config
        response = Response(body="", status=204)
        if origin is None or not self._is_allowed_origin(origin):
            return response

        response = self._add_cors_headers(response, origin)
        response = response.with_header("Access-Control-Allow-Methods", ", ".join(cfg.allow_methods))
        if cfg.allow_headers:
            response = response.with_header(
                "Access-Control-Allow-Headers",
                ", ".join(cfg.allow_headers),
            )
        return response.with_header("Access-Control-Max-Age", str(cfg.max_age))

    async def __call__(self, request: Request, next: Next) -> Response:
        origin = request.headers.get("origin")

        # Preflight: answered here, no route registers OPTIONS
        if request.method == "OPTIONS":
            return self._preflight_response(origin)

        if origin is None or not self._is_allowed_origin(origin):
            return await next(request)

        try:
            response = await next(request)
        except HTTPError as exc:
            response = await self.render_error(exc, request)
        return self._add_cors_headers(response, origin)
