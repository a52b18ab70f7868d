"""
Retry Policy
============
Re-invokes a failed operation with a wait between attempts.
"""

import asyncio
import time
from functools import wraps
from typing import Optional, Dict, Any, Callable, TypeVar, Awaitable
import structlog

from ..callables import is_async_callable
from .models import RetryConfig

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class Retry:
    """
    Retry policy.

    Attempt bookkeeping is local to each invocation, so concurrent calls
    through the same instance never share a counter. When every attempt
    fails the last underlying exception propagates unchanged.

    Async operations wait with ``sleep`` (cancellable); plain callables
    wait with ``sync_sleep`` on the calling thread.

    Example:
        retry = Retry("ledger", RetryConfig(max_attempts=5, wait_duration=0.2))

        post_entry = retry.decorate(ledger_client.post_entry)
    """

    def __init__(
        self,
        name: str,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        sync_sleep: Callable[[float], Any] = time.sleep,
    ):
        self.name = name
        self.config = config or RetryConfig()
        self._sleep = sleep
        self._sync_sleep = sync_sleep
        self._succeeded_without_retry = 0
        self._succeeded_with_retry = 0
        self._failed_without_retry = 0
        self._failed_with_retry = 0

    @property
    def metrics(self) -> Dict[str, Any]:
        """Get retry metrics."""
        return {
            "name": self.name,
            "successful_calls_without_retry": self._succeeded_without_retry,
            "successful_calls_with_retry": self._succeeded_with_retry,
            "failed_calls_without_retry": self._failed_without_retry,
            "failed_calls_with_retry": self._failed_with_retry,
        }

    async def call(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """
        Execute an async callable, retrying retryable failures.

        Args:
            func: Async operation to execute
            *args: Positional arguments for func
            **kwargs: Keyword arguments for func

        Returns:
            Result of func

        Raises:
            The last exception raised by func once attempts are exhausted,
            or the first non-retryable one
        """
        attempt = 0
        waited = 0.0

        while True:
            attempt += 1
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                delay = self._delay_after_error(e, attempt, waited)
                if delay is None:
                    raise
                await self._sleep(delay)
                waited += delay
                continue

            delay = self._delay_after_result(result, attempt)
            if delay is None:
                return result
            await self._sleep(delay)
            waited += delay

    def call_sync(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Execute a plain (blocking) callable, retrying retryable failures."""
        attempt = 0
        waited = 0.0

        while True:
            attempt += 1
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                delay = self._delay_after_error(e, attempt, waited)
                if delay is None:
                    raise
                self._sync_sleep(delay)
                waited += delay
                continue

            delay = self._delay_after_result(result, attempt)
            if delay is None:
                return result
            self._sync_sleep(delay)
            waited += delay

    def decorate(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Return a callable with the same signature and shape wrapped in this retry policy."""
        if is_async_callable(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                return await self.call(func, *args, **kwargs)
        else:
            @wraps(func)
            def wrapper(*args, **kwargs):
                return self.call_sync(func, *args, **kwargs)

        return wrapper

    def _delay_after_error(self, error: Exception, attempt: int, waited: float) -> Optional[float]:
        """Wait before the next attempt, or None when the error must propagate."""
        if not self.config.should_retry(error):
            self._record_failure(attempt)
            return None

        if attempt >= self.config.max_attempts:
            logger.warning(
                "retry_exhausted",
                retry=self.name,
                attempts=attempt,
                waited=waited,
                error=str(error),
            )
            self._record_failure(attempt)
            return None

        delay = self.config.interval(attempt)
        logger.info(
            "retry_attempt_failed",
            retry=self.name,
            attempt=attempt,
            delay=delay,
            error=str(error),
        )
        return delay

    def _delay_after_result(self, result: Any, attempt: int) -> Optional[float]:
        """Wait before the next attempt, or None when the result is final."""
        retry_on_result = self.config.retry_on_result
        if retry_on_result is not None and attempt < self.config.max_attempts and retry_on_result(result):
            delay = self.config.interval(attempt)
            logger.info("retry_on_result", retry=self.name, attempt=attempt, delay=delay)
            return delay

        self._record_success(attempt)
        return None

    def _record_success(self, attempts: int) -> None:
        if attempts == 1:
            self._succeeded_without_retry += 1
        else:
            self._succeeded_with_retry += 1

    def _record_failure(self, attempts: int) -> None:
        if attempts == 1:
            self._failed_without_retry += 1
        else:
            self._failed_with_retry += 1
