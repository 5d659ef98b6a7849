"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Immutable by convention,
built incrementally by design.

Wren speaks JSON: ``json_response`` serializes a payload, and
``success_envelope`` / ``error_envelope`` build the two shapes every
endpoint answers with::

    {"success": true,  "message": "...", "data": ...}
    {"success": false, "message": "...", "errors": ...}
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = JSON_CONTENT_TYPE
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers."""
        new = tuple(headers.items())
        return replace(self, headers=(*self.headers, *new))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    # -- Accessors --

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the first header value for *name* (case-insensitive)."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return default

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body_bytes)


def json_response(payload: Any, status: int = 200) -> Response:
    """Serialize *payload* as a JSON response.

    Values the encoder does not know (datetimes, decimals, UUIDs) are
    rendered with ``str()``.
    """
    body = json_module.dumps(payload, default=str, ensure_ascii=False)
    return Response(body=body, status=status, content_type=JSON_CONTENT_TYPE)


def success_envelope(data: Any = None, message: str = "Success", status: int = 200) -> Response:
    """``{"success": true, "message": message, "data": data}``."""
    return json_response({"success": True, "message": message, "data": data}, status)


def error_envelope(message: str = "Error", status: int = 500, errors: Any = None) -> Response:
    """``{"success": false, "message": message, "errors": errors}``."""
    return json_response({"success": False, "message": message, "errors": errors}, status)


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect response."""

    url: str
    status: int = 302
    headers: tuple[tuple[str, str], ...] = ()

    def to_response(self) -> Response:
        """Render as a bodiless ``Response`` with a ``Location`` header."""
        return Response(
            body="",
            status=self.status,
            content_type="text/plain; charset=utf-8",
            headers=(("Location", self.url), *self.headers),
        )
