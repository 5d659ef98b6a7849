"""Error handling pipeline.

Maps exceptions raised while handling a request to JSON failure
envelopes, using ``@app.error()`` handlers when one is registered:

- ``HTTPError``: its status, detail, ``errors`` and headers
- ``DataError``: 500 with the error message
- anything else: 500 with the raw exception message, logged with traceback
"""

import inspect
import logging
import traceback
from collections.abc import Callable
from typing import Any

from wren.data.errors import DataError
from wren.errors import HTTPError
from wren.http.request import Request
from wren.http.response import Response, error_envelope, json_response

logger = logging.getLogger("wren.server")


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
    status: int,
) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, exc)
    args, and may be sync or async. A non-``Response`` return value is
    serialized as JSON with *status*. A handler that raises is logged and
    replaced by a plain 500 envelope.
    """
    sig = inspect.signature(handler)
    params = list(sig.parameters.values())

    try:
        if len(params) >= 2:
            result = handler(request, exc)
        elif len(params) == 1:
            result = handler(request)
        else:
            result = handler()

        if inspect.isawaitable(result):
            result = await result
    except Exception as err:
        logger.error(
            "Error handler %r failed on %s %s",
            getattr(handler, "__name__", handler),
            request.method,
            request.path,
            exc_info=err,
        )
        return error_envelope(str(err) or type(err).__name__, 500)

    if isinstance(result, Response):
        return result
    return json_response(result, status)


def _lookup(
    error_handlers: dict[int | type, Callable[..., Any]],
    exc: Exception,
    status: int,
) -> Callable[..., Any] | None:
    """Most specific exception type first, then the status code."""
    for cls in type(exc).__mro__:
        if cls in error_handlers:
            return error_handlers[cls]
        if cls is Exception:
            break
    return error_handlers.get(status)


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
) -> Response:
    """Map an HTTPError to a failure envelope."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    handler = _lookup(error_handlers, exc, exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc, exc.status)
    else:
        response = error_envelope(exc.detail or f"Error {exc.status}", exc.status, exc.errors)

    for name, value in exc.headers:
        if response.header(name) is None:
            response = response.with_header(name, value)
    return response


async def handle_data_error(
    exc: DataError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
) -> Response:
    """Map a data-layer failure to a 500 envelope carrying its message."""
    logger.warning("%s %s: %s", request.method, request.path, exc)

    handler = _lookup(error_handlers, exc, 500)
    if handler is not None:
        return await call_error_handler(handler, request, exc, 500)
    return error_envelope(str(exc), 500)


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.error("500 %s %s", request.method, request.path, exc_info=exc)

    handler = _lookup(error_handlers, exc, 500)
    if handler is not None:
        return await call_error_handler(handler, request, exc, 500)

    errors = None
    if debug:
        errors = {
            "type": type(exc).__name__,
            "traceback": traceback.format_exception(exc),
        }
    return error_envelope(str(exc) or type(exc).__name__, 500, errors)
