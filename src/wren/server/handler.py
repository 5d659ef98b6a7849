"""ASGI handler: translates ASGI scope/messages to wren types.

The only component that touches raw ASGI for requests. Converts the
scope to a typed ``Request``, checks the database, runs the middleware
chain around route dispatch, and sends the ``Response`` back through
ASGI ``send()``.

Dispatch order::

    database connect check
      -> middleware (HTTPS redirect, CORS, rate limit, user middleware)
        -> base path stripped -> route matched -> Context built
          -> handler (sync or async) -> Response
"""

import logging
from collections.abc import Callable
from contextvars import Token
from typing import TYPE_CHECKING, Any

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.invoke import invoke
from wren.context import Context, client_identity, request_var
from wren.data.errors import ConnectionError as DBConnectionError
from wren.data.errors import DataError
from wren.errors import HTTPError
from wren.http.request import Request
from wren.http.response import Redirect, Response, error_envelope, success_envelope
from wren.middleware.protocol import Next
from wren.routing.router import Router, strip_base_path
from wren.server.errors import handle_data_error, handle_http_error, handle_internal_error
from wren.server.sender import send_response

if TYPE_CHECKING:
    from wren.data.database import Database
    from wren.security.service import Security

logger = logging.getLogger("wren.server")


def to_response(result: Any) -> Response:
    """Coerce a handler's return value into a Response.

    ``Response`` passes through, ``Redirect`` is rendered, anything else
    becomes the ``data`` of a success envelope.
    """
    if isinstance(result, Response):
        return result
    if isinstance(result, Redirect):
        return result.to_response()
    return success_envelope(result)


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: tuple[Callable[..., Any], ...],
    error_handlers: dict[int | type, Callable[..., Any]],
    base_path: str = "",
    db: "Database | None" = None,
    security: "Security | None" = None,
    client_key_header: str | None = None,
    debug: bool = False,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    token: Token[Request] = request_var.set(request)

    try:
        if db is not None:
            await db.connect()

        async def dispatch(req: Request) -> Response:
            path = strip_base_path(req.path, base_path or req.root_path)
            match = router.match(req.method, path)
            ctx = await Context.from_request(
                req,
                match,
                db=db,
                security=security,
                client_id=client_identity(req, client_key_header),
            )
            result = await invoke(match.route.handler, ctx)
            return to_response(result)

        # Wrap middleware around the dispatch
        handler = dispatch
        for mw in reversed(middleware):
            outer = handler

            async def make_next(req: Request, _mw: Any = mw, _next: Next = outer) -> Response:
                return await _mw(req, _next)

            handler = make_next

        response = await handler(request)

    except DBConnectionError as exc:
        logger.error("Database connection failed: %s", exc)
        response = error_envelope(f"Database connection failed: {exc}", 500)
    except HTTPError as exc:
        response = await handle_http_error(exc, request, error_handlers)
    except DataError as exc:
        response = await handle_data_error(exc, request, error_handlers)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers, debug)
    finally:
        request_var.reset(token)

    await send_response(response, send, head=request.method == "HEAD")
