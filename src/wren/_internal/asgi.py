"""ASGI type aliases.

The raw ``Scope`` / ``Receive`` / ``Send`` shapes from the ASGI 3.0 spec.
Only ``wren.server`` and ``wren.testing`` speak ASGI directly; everything
else works with ``Request`` and ``Response``.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]
