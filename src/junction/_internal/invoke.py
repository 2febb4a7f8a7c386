"""Invoke helpers — call sync or async callables uniformly.

Handlers and middleware can be ``def`` or ``async def``. The async
dispatch path must handle both, so the sync/async check lives here.

Usage::

    from junction._internal.invoke import invoke

    result = await invoke(handler, *args, **kwargs)
"""

import functools
import inspect
from typing import Any

from anyio import to_thread


async def invoke(target: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *target* and await the result if it's awaitable."""
    result = target(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


async def invoke_in_thread(target: Any, *args: Any, **kwargs: Any) -> Any:
    """Like ``invoke``, but sync callables run in a worker thread.

    Keeps blocking handlers off the event loop. Coroutine functions are
    awaited directly.
    """
    if inspect.iscoroutinefunction(target):
        return await target(*args, **kwargs)
    result = await to_thread.run_sync(functools.partial(target, *args, **kwargs))
    if inspect.isawaitable(result):
        result = await result
    return result


def ensure_sync(result: Any, owner: str) -> Any:
    """Return *result*, or raise ``TypeError`` if it is awaitable.

    The sync dispatch path cannot await. A coroutine is closed before
    raising so it is not left pending.
    """
    if not inspect.isawaitable(result):
        return result
    close = getattr(result, "close", None)
    if close is not None:
        close()
    msg = f"{owner} returned an awaitable; dispatch it with adispatch()"
    raise TypeError(msg)
