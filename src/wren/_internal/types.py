"""Shared type aliases used across wren modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: receives a Context, returns a Response or a plain value
Handler: TypeAlias = Callable[..., Any]

# Error handler: receives (request, error?) and returns a Response
ErrorHandler: TypeAlias = Callable[..., Any]

# Lifecycle hook: zero-argument, sync or async
Hook: TypeAlias = Callable[[], Any]
