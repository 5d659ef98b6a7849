"""Wren exception hierarchy.

Shared across Router, App, handler, middleware, and security so every
module raises and catches the same types.
"""

from dataclasses import dataclass
from typing import Any


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when app configuration is invalid.

    Typically raised at setup time: a bad environment value, an empty
    token secret, or a route registered after the app started serving.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(WrenError):
    """An error that maps directly to a JSON failure envelope.

    Raised by the router, middleware, security helpers, or handlers. The
    ASGI handler catches these and renders
    ``{"success": false, "message": detail, "errors": errors}`` with
    ``status``, unless an ``@app.error()`` handler takes over.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()
    errors: Any = None

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request method and path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class Unauthorized(HTTPError):  # noqa: N818
    """401: missing, malformed, invalid, or expired bearer token."""

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(status=401, detail=detail)


class TooManyRequests(HTTPError):  # noqa: N818
    """429: the client exhausted its rate-limit window.

    Carries a ``Retry-After`` header with the seconds left in the window.
    """

    def __init__(self, retry_after: int, detail: str = "Too Many Requests") -> None:
        super().__init__(
            status=429,
            detail=detail,
            headers=(("Retry-After", str(retry_after)),),
        )

    @property
    def retry_after(self) -> int:
        return int(dict(self.headers)["Retry-After"])


class ValidationFailed(HTTPError):  # noqa: N818
    """400: handler-level input validation failed.

    ``errors`` is rendered verbatim into the envelope::

        raise ValidationFailed("Email is required", errors={"email": ["required"]})
    """

    def __init__(self, detail: str = "Validation failed", errors: Any = None, status: int = 400) -> None:
        super().__init__(status=status, detail=detail, errors=errors)
