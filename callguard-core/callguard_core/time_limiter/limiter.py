"""
Time Limiter Core
=================
Races an async operation against a timer and cancels it on timeout.
"""

import asyncio
import concurrent.futures
from functools import wraps
from typing import Optional, Any, Callable, TypeVar, Awaitable, Union
import structlog

from ..exceptions import TimeLimitExceededError
from .models import TimeLimiterConfig

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Supplier = Callable[..., Union[Awaitable[T], "concurrent.futures.Future[T]"]]


def _as_future(pending: Any) -> asyncio.Future:
    if isinstance(pending, concurrent.futures.Future):
        return asyncio.wrap_future(pending)
    return asyncio.ensure_future(pending)


class TimeLimiter:
    """
    Time limiter for async operations.

    The guarded call returns as soon as either the operation finishes or
    ``timeout_duration`` elapses, whichever is first. On timeout the
    operation is sent a cancellation but is not waited for, so a slow
    cancellation never extends the caller's wait.

    Example:
        limiter = TimeLimiter("search", TimeLimiterConfig(timeout_duration=2.0))

        search = limiter.decorate(search_client.query)
    """

    def __init__(self, name: str, config: Optional[TimeLimiterConfig] = None):
        self.name = name
        self.config = config or TimeLimiterConfig()

    async def call(self, supplier: Supplier, *args, **kwargs) -> T:
        """
        Start the operation and wait for it at most timeout_duration.

        Args:
            supplier: Callable returning a coroutine, an asyncio future/task
                or a concurrent.futures.Future
            *args: Positional arguments for supplier
            **kwargs: Keyword arguments for supplier

        Returns:
            Result of the operation, unchanged

        Raises:
            TimeLimitExceededError: If the timer fired first
        """
        future = _as_future(supplier(*args, **kwargs))
        timeout = self.config.timeout_duration

        try:
            await asyncio.wait({future}, timeout=timeout)
        except asyncio.CancelledError:
            # Caller abandoned the call; don't leave the operation running.
            future.cancel()
            raise

        if future.done():
            return future.result()

        if self.config.cancel_running_future:
            future.cancel()
        future.add_done_callback(self._log_late_outcome)

        operation = getattr(supplier, "__name__", None)
        logger.warning(
            "time_limit_exceeded",
            limiter=self.name,
            timeout=timeout,
            operation=operation,
            cancelled=self.config.cancel_running_future,
        )
        raise TimeLimitExceededError(self.name, timeout, operation)

    def decorate(self, supplier: Supplier) -> Callable[..., Awaitable[T]]:
        """Return an async callable with the same signature bounded by this limiter."""
        @wraps(supplier)
        async def wrapper(*args, **kwargs) -> T:
            return await self.call(supplier, *args, **kwargs)

        return wrapper

    def _log_late_outcome(self, future: asyncio.Future) -> None:
        # Retrieves the exception so asyncio doesn't report it as unhandled.
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.debug("late_failure_after_timeout", limiter=self.name, error=str(error))
