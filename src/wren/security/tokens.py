"""Compact HMAC-SHA256 signed tokens (JWT, HS256 only) via PyJWT.

Format::

    b64url(header) "." b64url(payload) "." b64url(hmac_sha256(secret, first_two))

with ``header = {"alg": "HS256", "typ": "JWT"}`` and ``payload`` the
caller's claims plus ``iat`` and ``exp`` (integer UNIX seconds). No
server-side state is kept.

Expiry is checked against the codec's own clock rather than PyJWT's, so
tests can move time and a token stays valid while ``exp >= now``.

Usage::

    codec = TokenCodec("s3cr3t")
    token = codec.issue({"sub": "u1"}, ttl=3600)
    claims = codec.verify(token)  # dict, or None when invalid/expired
"""

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

import jwt
from jwt.exceptions import InvalidTokenError

from wren.errors import ConfigurationError

ALGORITHM = "HS256"

_log = logging.getLogger("wren.security")

# exp is checked against the injected clock; iat/nbf are not enforced
_DECODE_OPTIONS = {
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "require": ["exp"],
}


class TokenCodec:
    """Issue and verify signed tokens with a shared secret.

    ``clock`` returns the current UNIX time; tests inject a fake one.
    """

    __slots__ = ("_clock", "_secret")

    def __init__(self, secret: str | bytes, *, clock: Callable[[], float] = time.time) -> None:
        if not secret:
            msg = "Token secret must not be empty. Set JWT_SECRET or AppConfig.secret_key."
            raise ConfigurationError(msg)
        self._secret = secret
        self._clock = clock

    def issue(self, claims: Mapping[str, Any], ttl: int = 86400) -> str:
        """Sign *claims* with ``iat = now`` and ``exp = now + ttl``."""
        now = int(self._clock())
        payload = {**claims, "iat": now, "exp": now + int(ttl)}
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> dict[str, Any] | None:
        """Return the claims of a valid, unexpired token, else ``None``.

        Only HS256 is accepted; PyJWT compares the signature in constant
        time.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options=_DECODE_OPTIONS,
            )
        except InvalidTokenError as exc:
            _log.debug("Token rejected: %s", exc)
            return None

        exp = claims.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, int | float) or exp < self._clock():
            _log.debug("Token rejected: expired")
            return None
        return claims
