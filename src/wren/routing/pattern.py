"""Route pattern compilation.

Turns a path template with ``:name`` placeholders into an anchored
regular expression with named captures::

    "/users/:id"                -> ^/users/(?P<id>[^/]+)$
    "/posts/:post_id/comments"  -> ^/posts/(?P<post_id>[^/]+)/comments$

Literal text is escaped, so ``/files/report.json`` only matches a literal
dot. A ``:`` that is not followed by an identifier stays literal.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass

from wren.errors import ConfigurationError

_PLACEHOLDER = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")

# One or more non-slash characters
_SEGMENT = "[^/]+"


@dataclass(frozen=True, slots=True)
class PathMatcher:
    """A compiled path template.

    ``names`` lists the placeholders in the order they appear.
    """

    template: str
    regex: re.Pattern[str]
    names: tuple[str, ...]

    @property
    def is_static(self) -> bool:
        """True when the template has no placeholders."""
        return not self.names

    def match(self, path: str) -> dict[str, str] | None:
        """Return the captured params if *path* matches the whole template."""
        found = self.regex.fullmatch(path)
        if found is None:
            return None
        return found.groupdict()


def _tokens(template: str) -> Iterator[tuple[str, str]]:
    """Yield ``("literal", text)`` and ``("param", name)`` tokens."""
    pos = 0
    for found in _PLACEHOLDER.finditer(template):
        if found.start() > pos:
            yield "literal", template[pos : found.start()]
        yield "param", found.group(1)
        pos = found.end()
    if pos < len(template):
        yield "literal", template[pos:]


def compile_path(template: str) -> PathMatcher:
    """Compile a route template into a ``PathMatcher``.

    Raises ``ConfigurationError`` when a placeholder name repeats, since
    one capture would silently shadow the other.
    """
    parts: list[str] = []
    names: list[str] = []
    for kind, value in _tokens(template):
        if kind == "literal":
            parts.append(re.escape(value))
            continue
        if value in names:
            msg = f"Duplicate placeholder ':{value}' in route {template!r}."
            raise ConfigurationError(msg)
        names.append(value)
        parts.append(f"(?P<{value}>{_SEGMENT})")

    regex = re.compile("".join(parts))
    return PathMatcher(template=template, regex=regex, names=tuple(names))
