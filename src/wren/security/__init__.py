"""Security: signed tokens, bearer auth, rate limiting, passwords.

Tokens and bearer auth::

    from wren.security import TokenCodec, requires_auth

    codec = TokenCodec("s3cr3t")
    token = codec.issue({"sub": "u1"}, ttl=3600)

    @app.get("/me")
    @requires_auth
    def me(ctx):
        return ctx.success(ctx.claims)

Password hashing (argon2id)::

    from wren.security import hash_password, verify_password

    hashed = hash_password("my-password")
    ok = verify_password("my-password", hashed)
"""

from wren.security.auth import authenticate, bearer_token, requires_auth
from wren.security.passwords import hash_password, needs_rehash, verify_password
from wren.security.rate_limit import (
    FileWindowStore,
    FixedWindowLimiter,
    MemoryWindowStore,
    RateDecision,
    RateWindow,
    WindowStore,
)
from wren.security.sanitize import sanitize_for_output
from wren.security.service import Security
from wren.security.tokens import TokenCodec

__all__ = [
    "FileWindowStore",
    "FixedWindowLimiter",
    "MemoryWindowStore",
    "RateDecision",
    "RateWindow",
    "Security",
    "TokenCodec",
    "WindowStore",
    "authenticate",
    "bearer_token",
    "hash_password",
    "needs_rehash",
    "requires_auth",
    "sanitize_for_output",
    "verify_password",
]
