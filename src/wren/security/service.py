"""The ``Security`` facade: tokens, rate limiting, passwords, sanitizing.

One instance per app, built from ``AppConfig`` and exposed to handlers as
``ctx.security``::

    @app.post("/login")
    async def login(ctx):
        user = await ctx.db.table("users").where("email", ctx.body.get("email")).first()
        if user is None or not ctx.security.verify_password(ctx.body.get("password", ""), user["password"]):
            return ctx.error("Invalid credentials", 401)
        return ctx.success({"token": ctx.security.issue_token({"sub": str(user["id"])})})
"""

import time
from collections.abc import Callable, Mapping
from typing import Any

from wren.config import AppConfig
from wren.errors import ConfigurationError
from wren.security import passwords
from wren.security.auth import authenticate
from wren.security.rate_limit import (
    FileWindowStore,
    FixedWindowLimiter,
    MemoryWindowStore,
    RateDecision,
    WindowStore,
)
from wren.security.sanitize import sanitize_for_output
from wren.security.tokens import TokenCodec


class Security:
    """Token codec + rate limiter + password helpers behind one object.

    ``codec`` is ``None`` when no secret is configured; token operations
    then raise ``ConfigurationError``.
    """

    __slots__ = ("codec", "limiter", "token_ttl")

    def __init__(
        self,
        codec: TokenCodec | None,
        limiter: FixedWindowLimiter,
        *,
        token_ttl: int = 86400,
    ) -> None:
        self.codec = codec
        self.limiter = limiter
        self.token_ttl = token_ttl

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        store: WindowStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> "Security":
        """Build from config. ``store`` overrides the configured window store."""
        codec = TokenCodec(config.secret_key, clock=clock) if config.secret_key else None
        if store is None:
            store = (
                FileWindowStore(config.rate_limit_dir)
                if config.rate_limit_dir
                else MemoryWindowStore()
            )
        limiter = FixedWindowLimiter(
            store,
            limit=config.rate_limit_requests,
            window_seconds=config.rate_limit_window,
            clock=clock,
        )
        return cls(codec, limiter, token_ttl=config.token_ttl)

    def _require_codec(self) -> TokenCodec:
        if self.codec is None:
            msg = "No token secret configured. Set JWT_SECRET or AppConfig.secret_key."
            raise ConfigurationError(msg)
        return self.codec

    # -- Tokens --

    def issue_token(self, claims: Mapping[str, Any], ttl: int | None = None) -> str:
        return self._require_codec().issue(claims, self.token_ttl if ttl is None else ttl)

    def verify_token(self, token: str) -> dict[str, Any] | None:
        return self._require_codec().verify(token)

    def authenticate(self, headers: Mapping[str, str]) -> dict[str, Any]:
        """Claims from the bearer token, or ``Unauthorized``."""
        return authenticate(headers, self._require_codec())

    # -- Rate limiting --

    def rate_limit(
        self,
        client_id: str,
        limit: int | None = None,
        window_seconds: int | None = None,
        *,
        scope: str = "",
    ) -> RateDecision:
        """Count a hit; raises ``TooManyRequests`` when over the limit."""
        return self.limiter.check(client_id, limit=limit, window_seconds=window_seconds, scope=scope)

    # -- Passwords / output --

    @staticmethod
    def hash_password(password: str) -> str:
        return passwords.hash_password(password)

    @staticmethod
    def verify_password(password: str, phc_hash: str) -> bool:
        return passwords.verify_password(password, phc_hash)

    @staticmethod
    def sanitize(data: Any) -> Any:
        return sanitize_for_output(data)
