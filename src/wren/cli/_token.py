"""``wren token``: issue a signed bearer token from the configured secret.

Reads ``JWT_SECRET`` / ``JWT_TTL`` the same way the app does (real
environment over ``--env-file``) and prints the token to stdout::

    $ wren token --sub u1 --claim role=admin --ttl 3600
    eyJ0eXAiOiJKV1QiLCJhbGciOiJIUzI1NiJ9.eyJzdWIiOiJ1MSIs...
"""

import argparse
import sys

from wren.config import AppConfig
from wren.errors import ConfigurationError
from wren.security.tokens import TokenCodec


def parse_claims(pairs: list[str]) -> dict[str, str]:
    """``["role=admin", "team=core"]`` -> ``{"role": "admin", "team": "core"}``."""
    claims: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            msg = f"Invalid claim {pair!r}: expected KEY=VALUE"
            raise ValueError(msg)
        claims[key] = value
    return claims


def run_token(args: argparse.Namespace) -> None:
    """Print a token for ``args.sub`` with any extra ``--claim`` values."""
    try:
        config = AppConfig.from_env(env_file=args.env_file)
        codec = TokenCodec(config.secret_key)
        claims = {**parse_claims(args.claim), "sub": args.sub}
    except (ConfigurationError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    ttl = args.ttl if args.ttl is not None else config.token_ttl
    print(codec.issue(claims, ttl))
