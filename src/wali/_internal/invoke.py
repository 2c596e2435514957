"""Invoke helpers: call sync or async lifecycle hooks uniformly.

Startup and shutdown hooks can be ``def`` or ``async def``. The kernel
awaits them through this one helper so the check lives in one place.

Usage::

    from wali._internal.invoke import invoke

    await invoke(hook)
"""

import inspect
from typing import Any


async def invoke(hook: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a hook and await the result if it's a coroutine.

    Works with both sync and async callables::

        @app.on_startup
        def seed():
            db.execute_script(SCHEMA)

        @app.on_startup
        async def warm_cache():
            await cache.load()
    """
    result = hook(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
