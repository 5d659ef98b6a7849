"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    CORSMiddleware -- Cross-Origin Resource Sharing, preflight short-circuit
    HTTPSRedirectMiddleware -- 301 plain-HTTP requests to HTTPS
    RateLimitMiddleware -- Fixed-window limit per client
"""

from wren.middleware.builtin import CORSConfig, CORSMiddleware
from wren.middleware.https import HTTPSRedirectMiddleware
from wren.middleware.protocol import Middleware, Next
from wren.middleware.rate_limit import RateLimitMiddleware

__all__ = [
    "CORSConfig",
    "CORSMiddleware",
    "HTTPSRedirectMiddleware",
    "Middleware",
    "Next",
    "RateLimitMiddleware",
]
