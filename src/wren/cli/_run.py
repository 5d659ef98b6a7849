"""``wren run``: serve an app with uvicorn."""

import argparse
import sys

from wren.cli._resolve import resolve_app


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app`` and serve it. Flags override the app config."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    app.run(args.host, args.port, reload=args.reload, app_path=args.app)
