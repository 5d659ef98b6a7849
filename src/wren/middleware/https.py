"""Redirect plain-HTTP requests to HTTPS.

Enabled by the app in production (``APP_ENV=production``) or with
``force_https``. A request counts as secure when the ASGI scheme is
``https`` or a proxy says so via ``X-Forwarded-Proto``.
"""

from wren.http.request import Request
from wren.http.response import Redirect, Response
from wren.middleware.protocol import Next


def is_secure(request: Request) -> bool:
    if request.scheme == "https":
        return True
    forwarded = request.headers.get("x-forwarded-proto", "")
    return forwarded.split(",")[0].strip().lower() == "https"


class HTTPSRedirectMiddleware:
    """301 every insecure request to the same URL over HTTPS."""

    __slots__ = ()

    async def __call__(self, request: Request, next: Next) -> Response:
        if is_secure(request):
            return await next(request)
        return Redirect(f"https://{request.host}{request.url}", status=301).to_response()
