"""Bearer-token authentication.

``authenticate`` reads ``Authorization: Bearer <token>`` and returns the
verified claims, raising ``Unauthorized`` (401) otherwise::

    missing / malformed header   -> "Unauthorized"
    bad signature / expired      -> "Invalid or expired token"

``requires_auth`` wraps a handler so it only runs for authenticated
requests, with the claims on ``ctx.claims``::

    @app.get("/me")
    @requires_auth
    async def me(ctx):
        return ctx.success({"sub": ctx.claims["sub"]})
"""

import logging
import re
from collections.abc import Callable, Mapping
from functools import wraps
from typing import Any

from wren._internal.invoke import invoke
from wren.errors import ConfigurationError, Unauthorized
from wren.security.tokens import TokenCodec

_log = logging.getLogger("wren.security")

_BEARER_RE = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)


def bearer_token(headers: Mapping[str, str]) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header."""
    value = headers.get("authorization") or headers.get("Authorization")
    if not value:
        return None
    match = _BEARER_RE.match(value.strip())
    if match is None:
        return None
    return match.group(1).strip()


def authenticate(headers: Mapping[str, str], codec: TokenCodec) -> dict[str, Any]:
    """Return verified claims or raise ``Unauthorized``."""
    token = bearer_token(headers)
    if token is None:
        _log.debug("Rejected request without a bearer token")
        raise Unauthorized()

    claims = codec.verify(token)
    if claims is None:
        _log.debug("Rejected invalid or expired token")
        raise Unauthorized("Invalid or expired token")
    return claims


def requires_auth(handler: Callable[..., Any]) -> Callable[..., Any]:
    """Authenticate before *handler* runs; claims land on ``ctx.claims``."""

    @wraps(handler)
    async def wrapper(ctx: Any, *args: Any, **kwargs: Any) -> Any:
        if ctx.security is None:
            msg = "requires_auth needs an App configured with a secret_key."
            raise ConfigurationError(msg)
        ctx.claims = ctx.security.authenticate(ctx.headers)
        return await invoke(handler, ctx, *args, **kwargs)

    return wrapper
