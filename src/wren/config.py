"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups. ``AppConfig.from_env`` builds one from the
process environment layered over an optional ``.env`` file.
"""

import os
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from wren.errors import ConfigurationError

_LINE_RE = re.compile(r"^(?:export\s+)?(?P<key>[^=\s]+)\s*=\s*(?P<value>.*)$")

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, secret_key="s3cr3t")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    env: str = "development"
    base_path: str = ""

    # Tokens
    secret_key: str = ""
    token_ttl: int = 86400

    # Database ("sqlite:///path/to.db", a bare path, or ":memory:")
    database_url: str | None = None

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100
    rate_limit_window: int = 60
    rate_limit_dir: str | None = None  # None = in-memory windows
    rate_limit_key_header: str | None = None  # e.g. "x-forwarded-for" behind a proxy

    # CORS / transport
    cors_origins: tuple[str, ...] = ("*",)
    force_https: bool = False

    # Logging
    log_level: str = "info"

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    @property
    def redirect_to_https(self) -> bool:
        """True when plain-HTTP requests should be redirected."""
        return self.force_https or self.is_production

    @classmethod
    def from_env(
        cls,
        env_file: str | Path | None = ".env",
        environ: Mapping[str, str] | None = None,
    ) -> "AppConfig":
        """Build a config from ``.env`` values overlaid with the real environment.

        Real environment variables always win over the file. A missing
        ``.env`` file is not an error. Values that cannot be converted
        raise ``ConfigurationError``.
        """
        values: dict[str, str] = {}
        if env_file is not None and Path(env_file).is_file():
            values.update(load_env_file(env_file))
        values.update(os.environ if environ is None else environ)

        overrides: dict[str, Any] = {}
        for var, (field_name, convert) in _ENV_FIELDS.items():
            if var not in values:
                continue
            try:
                overrides[field_name] = convert(values[var])
            except ValueError as exc:
                msg = f"Invalid value for {var}: {values[var]!r} ({exc})"
                raise ConfigurationError(msg) from exc
        return cls(**overrides)


def load_env_file(path: str | Path) -> dict[str, str]:
    """Parse a ``.env`` file into a ``{key: value}`` mapping.

    Handles blank lines, ``#`` comment lines, an optional ``export``
    prefix, values wrapped in single or double quotes, and inline
    `` # comments`` after unquoted values. Lines without ``=`` are
    skipped. Later assignments override earlier ones.
    """
    result: dict[str, str] = {}
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        match = _LINE_RE.match(line)
        if match is None:
            continue
        value = match.group("value").strip()
        if not _is_quoted(value) and " #" in value:
            value = value[: value.index(" #")].rstrip()
        if _is_quoted(value):
            value = value[1:-1]
        result[match.group("key")] = value
    return result


def _is_quoted(value: str) -> bool:
    return len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'")


def _to_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    msg = "expected a boolean"
    raise ValueError(msg)


def _to_origins(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _to_optional(raw: str) -> str | None:
    return raw or None


_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "APP_ENV": ("env", str),
    "APP_DEBUG": ("debug", _to_bool),
    "APP_HOST": ("host", str),
    "APP_PORT": ("port", int),
    "APP_BASE_PATH": ("base_path", str),
    "JWT_SECRET": ("secret_key", str),
    "JWT_TTL": ("token_ttl", int),
    "DATABASE_URL": ("database_url", _to_optional),
    "RATE_LIMIT_ENABLED": ("rate_limit_enabled", _to_bool),
    "RATE_LIMIT_REQUESTS": ("rate_limit_requests", int),
    "RATE_LIMIT_WINDOW": ("rate_limit_window", int),
    "RATE_LIMIT_DIR": ("rate_limit_dir", _to_optional),
    "RATE_LIMIT_KEY_HEADER": ("rate_limit_key_header", _to_optional),
    "CORS_ORIGIN": ("cors_origins", _to_origins),
    "FORCE_HTTPS": ("force_https", _to_bool),
    "LOG_LEVEL": ("log_level", str.lower),
}
