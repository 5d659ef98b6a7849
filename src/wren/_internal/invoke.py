"""Invoke helpers: call sync or async handlers uniformly.

Route handlers, error handlers, and lifecycle hooks can be ``def`` or
``async def``. Anything that calls user code goes through ``invoke`` so
the sync/async check lives in exactly one place.

Usage::

    from wren._internal.invoke import invoke

    result = await invoke(handler, ctx)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable.

    Works with both sync and async callables::

        # sync: returns immediately, no await needed
        def show(ctx):
            return ctx.success({"id": ctx.params["id"]})

        # async: returns coroutine, awaited automatically
        async def index(ctx):
            users = await ctx.db.table("users").limit(10).get()
            return ctx.success(users)
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
