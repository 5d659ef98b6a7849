"""Global per-client rate limiting middleware.

Every request counts against its client's fixed window before routing.
Over the limit, the request gets a 429 envelope with ``Retry-After``.
Window store I/O runs on a worker thread.
"""

from functools import partial

import anyio

from wren.context import client_identity
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Next
from wren.security.rate_limit import FixedWindowLimiter


class RateLimitMiddleware:
    """Apply a ``FixedWindowLimiter`` to every request.

    Usage::

        limiter = FixedWindowLimiter(MemoryWindowStore(), limit=100, window_seconds=60)
        app.add_middleware(RateLimitMiddleware(limiter, key_header="x-forwarded-for"))
    """

    __slots__ = ("key_header", "limiter")

    def __init__(self, limiter: FixedWindowLimiter, *, key_header: str | None = None) -> None:
        self.limiter = limiter
        self.key_header = key_header

    async def __call__(self, request: Request, next: Next) -> Response:
        client_id = client_identity(request, self.key_header)
        # Raises TooManyRequests; the handler renders the 429 envelope
        decision = await anyio.to_thread.run_sync(partial(self.limiter.check, client_id))
        response = await next(request)
        return response.with_headers(
            {
                "X-RateLimit-Limit": str(decision.limit),
                "X-RateLimit-Remaining": str(decision.remaining),
            }
        )
