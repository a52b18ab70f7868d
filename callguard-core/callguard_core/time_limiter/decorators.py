"""
Time Limiter Decorator
======================
Decorator for bounding the duration of async functions.
"""

from typing import Callable, Awaitable

from .limiter import TimeLimiter


def time_limiter(limiter: TimeLimiter):
    """
    Decorator to fail async functions that run past the limiter's timeout.

    Example:
        search_limit = TimeLimiter("search", TimeLimiterConfig(timeout_duration=2.0))

        @time_limiter(search_limit)
        async def search(query: str):
            return await search_client.query(query)
    """
    def decorator(func: Callable[..., Awaitable]) -> Callable[..., Awaitable]:
        return limiter.decorate(func)

    return decorator
