"""Serving with uvicorn.

Hands the live ``App`` object to uvicorn. With ``reload`` an import
string is required, since uvicorn re-imports the app on every change.
"""

from typing import Any


def run_server(
    app: Any,
    host: str,
    port: int,
    *,
    reload: bool = False,
    app_path: str | None = None,
    log_level: str = "info",
) -> None:
    """Start uvicorn with *app*.

    Args:
        app: ASGI callable (wren App instance).
        host: Bind host address.
        port: Bind port number.
        reload: Restart on source changes. Needs *app_path*.
        app_path: ``"module:attribute"`` import string for the app.
        log_level: uvicorn log level (``"debug"``, ``"info"``, ...).
    """
    import uvicorn

    target = app_path if reload and app_path else app
    uvicorn.run(
        target,
        host=host,
        port=port,
        reload=bool(reload and app_path),
        log_level=log_level,
        lifespan="on",
    )
