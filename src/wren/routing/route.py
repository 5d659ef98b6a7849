"""Route and RouteMatch frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from wren.routing.pattern import PathMatcher


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route. Immutable once added to the table."""

    method: str
    path: str
    matcher: PathMatcher
    handler: Callable[..., Any]
    name: str | None = None


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match.

    ``path`` is the request path after the base path was stripped.
    """

    route: Route
    path_params: dict[str, str]
    path: str
