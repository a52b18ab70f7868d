"""
Retry Decorator
===============
Decorator for retrying async or plain functions.
"""

from typing import Any, Callable

from .policy import Retry


def with_retry(retry: Retry):
    """
    Decorator for retry with the policy's wait/backoff.

    Usage:
        fetch_retry = Retry("prices", RetryConfig(
            max_attempts=5,
            interval_function=exponential_backoff(initial=0.1),
        ))

        @with_retry(fetch_retry)
        async def fetch_data():
            ...
    """
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        return retry.decorate(func)

    return decorator
