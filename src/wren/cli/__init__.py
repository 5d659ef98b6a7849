"""Wren CLI: serve an app, list its routes, issue tokens.

Entry point registered as ``wren`` in ``pyproject.toml``::

    [project.scripts]
    wren = "wren.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``wren`` command."""
    parser = argparse.ArgumentParser(
        prog="wren",
        description="Wren: a small async JSON API framework.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- wren run ---------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Serve an app with uvicorn")
    run_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change",
    )

    # -- wren routes ------------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    # -- wren token -------------------------------------------------------
    token_parser = subparsers.add_parser("token", help="Issue a signed bearer token")
    token_parser.add_argument("--sub", required=True, help="Subject claim")
    token_parser.add_argument(
        "--ttl",
        type=int,
        default=None,
        help="Lifetime in seconds (default: JWT_TTL or 86400)",
    )
    token_parser.add_argument(
        "--claim",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra claim; repeatable",
    )
    token_parser.add_argument(
        "--env-file",
        default=".env",
        help="Env file holding JWT_SECRET (default: .env)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from wren.cli._run import run_server

        run_server(args)
    elif args.command == "routes":
        from wren.cli._routes import run_routes

        run_routes(args)
    elif args.command == "token":
        from wren.cli._token import run_token

        run_token(args)
