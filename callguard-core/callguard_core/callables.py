"""
Callable Helpers
================
Tells coroutine functions apart from plain callables so each policy can
return a wrapper of the same shape as the operation it guards.
"""

import inspect
from typing import Any


def is_async_callable(func: Any) -> bool:
    """
    True for coroutine functions, bound async methods, partials of either,
    and objects whose ``__call__`` is ``async def``.
    """
    if inspect.iscoroutinefunction(func):
        return True
    call = getattr(func, "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)
