"""Recursive HTML escaping for values that may end up in HTML."""

import html
from typing import Any


def sanitize_for_output(data: Any) -> Any:
    """HTML-escape every string leaf of a nested structure.

    Dicts, lists and tuples are rebuilt with escaped contents; dict keys
    are left as-is. Non-string leaves are returned unchanged.
    """
    if isinstance(data, str):
        return html.escape(data, quote=True)
    if isinstance(data, dict):
        return {key: sanitize_for_output(value) for key, value in data.items()}
    if isinstance(data, list):
        return [sanitize_for_output(item) for item in data]
    if isinstance(data, tuple):
        return tuple(sanitize_for_output(item) for item in data)
    return data
