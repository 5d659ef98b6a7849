"""Routing: ordered route table with ``:name`` path segments.

Routes are registered during setup and frozen when the app starts
serving. Matching scans in registration order; first match wins.
"""

from wren.routing.pattern import PathMatcher, compile_path
from wren.routing.route import Route, RouteMatch
from wren.routing.router import Router, join_path, strip_base_path

__all__ = [
    "PathMatcher",
    "Route",
    "RouteMatch",
    "Router",
    "compile_path",
    "join_path",
    "strip_base_path",
]
