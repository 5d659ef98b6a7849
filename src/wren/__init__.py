"""Wren: a small async JSON API framework.

Routes with ``:name`` segments, a per-request context, a fluent query
builder, and stateless bearer-token auth with fixed-window rate limiting.

Basic usage::

    from wren import App, AppConfig

    app = App(AppConfig.from_env())

    @app.get("/users/:id")
    async def show(ctx):
        user = await ctx.db.table("users").where("id", ctx.params["id"]).first()
        if user is None:
            return ctx.error("User not found", 404)
        return ctx.success(user)

    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Context",
    "Database",
    "HTTPError",
    "Middleware",
    "Next",
    "NotFound",
    "Query",
    "Redirect",
    "Request",
    "Response",
    "Security",
    "TooManyRequests",
    "Unauthorized",
    "ValidationFailed",
    "WrenError",
    "get_request",
    "json_response",
    "requires_auth",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "App":
        from wren.app import App

        return App

    if name == "AppConfig":
        from wren.config import AppConfig

        return AppConfig

    if name in ("Context", "get_request"):
        from wren import context as _ctx

        return getattr(_ctx, name)

    if name == "Request":
        from wren.http.request import Request

        return Request

    if name in ("Response", "Redirect", "json_response"):
        from wren.http import response as _resp

        return getattr(_resp, name)

    if name in ("Middleware", "Next"):
        from wren.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("Database", "Query"):
        from wren import data as _data

        return getattr(_data, name)

    if name in ("Security", "requires_auth"):
        from wren import security as _security

        return getattr(_security, name)

    if name in (
        "ConfigurationError",
        "HTTPError",
        "NotFound",
        "TooManyRequests",
        "Unauthorized",
        "ValidationFailed",
        "WrenError",
    ):
        from wren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
