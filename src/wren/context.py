"""Per-request context handed to every route handler.

``Context`` is the handler's whole view of the request (method, path,
query, parsed body, headers, path params) plus the app's shared
collaborators (``db``, ``security``). ``success`` and ``error`` build
the JSON envelopes and *return* them; the handler returns the result::

    @app.get("/users/:id")
    async def show(ctx):
        user = await ctx.db.table("users").where("id", ctx.params["id"]).first()
        if user is None:
            return ctx.error("User not found", 404)
        return ctx.success(user)

``request_var`` holds the current ``Request`` for code that has no
``Context`` at hand (middleware helpers, logging filters).
"""

import json
from contextvars import ContextVar
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any

import anyio

from wren.errors import ConfigurationError, ValidationFailed
from wren.http.headers import Headers
from wren.http.query import QueryParams
from wren.http.request import Request
from wren.http.response import Response, error_envelope, success_envelope

if TYPE_CHECKING:
    from wren.data.database import Database
    from wren.routing.route import RouteMatch
    from wren.security.rate_limit import RateDecision
    from wren.security.service import Security

request_var: ContextVar[Request] = ContextVar("wren_request")
"""The current request. Set by the ASGI handler before dispatch."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


def client_identity(request: Request, key_header: str | None = None) -> str:
    """Identify the client for rate limiting.

    With *key_header* set (e.g. ``x-forwarded-for`` behind a proxy) the
    first hop of that header wins; otherwise the peer address is used.
    """
    if key_header:
        raw = request.headers.get(key_header)
        if raw:
            forwarded = raw.split(",")[0].strip()
            if forwarded:
                return forwarded
    if request.client:
        return request.client[0]
    return "unknown"


async def parse_body(request: Request) -> Any:
    """Decode the request body.

    JSON when it parses, URL-encoded form fields when the content type
    says so, otherwise an empty dict. A form body that is not UTF-8 is a
    400.
    """
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        pass
    content_type = (request.content_type or "").lower()
    if content_type.startswith("application/x-www-form-urlencoded"):
        try:
            return await request.form()
        except UnicodeDecodeError as exc:
            raise ValidationFailed("Malformed form body: not valid UTF-8") from exc
    return {}


@dataclass(slots=True)
class Context:
    """Mutable per-request state. Lives for exactly one request."""

    request: Request
    method: str
    path: str
    query: QueryParams
    headers: Headers
    body: Any = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    client_id: str = "unknown"
    route_path: str | None = None
    db: "Database | None" = None
    security: "Security | None" = None
    claims: dict[str, Any] | None = None

    @classmethod
    async def from_request(
        cls,
        request: Request,
        match: "RouteMatch",
        *,
        db: "Database | None" = None,
        security: "Security | None" = None,
        client_id: str | None = None,
    ) -> "Context":
        """Build the context for a matched route."""
        return cls(
            request=request,
            method=request.method,
            path=match.path,
            query=request.query,
            headers=request.headers,
            body=await parse_body(request),
            params=dict(match.path_params),
            client_id=client_id or client_identity(request),
            route_path=match.route.path,
            db=db,
            security=security,
        )

    def header(self, key: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(key, default)

    def success(self, data: Any = None, message: str = "Success", status: int = 200) -> Response:
        """``{"success": true, "message": ..., "data": ...}``."""
        return success_envelope(data, message, status)

    def error(self, message: str = "Error", status: int = 500, errors: Any = None) -> Response:
        """``{"success": false, "message": ..., "errors": ...}``."""
        return error_envelope(message, status, errors)

    def _require_security(self) -> "Security":
        if self.security is None:
            msg = "No security configured on this app."
            raise ConfigurationError(msg)
        return self.security

    def auth(self) -> dict[str, Any]:
        """Authenticate the bearer token and return (and keep) its claims.

        Raises ``Unauthorized`` on a missing or bad token.
        """
        self.claims = self._require_security().authenticate(self.headers)
        return self.claims

    async def rate_limit(self, limit: int = 100, window_seconds: int = 60) -> "RateDecision":
        """Apply a per-route limit for this client.

        The window store is touched on a worker thread. Raises
        ``TooManyRequests`` once the window is exhausted::

            await ctx.rate_limit(limit=5, window_seconds=60)
        """
        security = self._require_security()
        scope = f"{self.method} {self.route_path or self.path}"
        return await anyio.to_thread.run_sync(
            partial(security.rate_limit, self.client_id, limit, window_seconds, scope=scope)
        )
