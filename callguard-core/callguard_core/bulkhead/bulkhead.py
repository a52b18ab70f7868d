"""
Bulkhead Core
=============
Caps the number of concurrently in-flight calls to one dependency.
"""

import asyncio
import threading
from collections import deque
from functools import wraps
from typing import Optional, Dict, Any, Callable, Deque, TypeVar, Awaitable
import structlog

from ..callables import is_async_callable
from ..exceptions import BulkheadFullError
from .models import BulkheadConfig

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class _Waiter:
    """A queued caller, woken through a loop future (async) or an event (blocking)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.granted = False
        self.loop = loop
        self.future = loop.create_future() if loop is not None else None
        self.event = threading.Event() if loop is None else None

    def wake(self) -> None:
        if self.loop is None:
            self.event.set()
        else:
            self.loop.call_soon_threadsafe(self._resolve)

    def _resolve(self) -> None:
        if not self.future.done():
            self.future.set_result(None)


class Bulkhead:
    """
    Counting-permit bulkhead.

    A call takes one permit for its whole duration. When none is free the
    caller waits up to ``max_wait_duration``; waiters are served in arrival
    order and a released permit is handed straight to the oldest waiter.
    Async operations wait on the event loop; plain callables block their
    own thread while waiting. Both kinds share one permit pool.

    Example:
        db_bulkhead = Bulkhead("reporting-db", BulkheadConfig(max_concurrent_calls=5))

        run_query = db_bulkhead.decorate(run_query)
    """

    def __init__(self, name: str, config: Optional[BulkheadConfig] = None):
        self.name = name
        self.config = config or BulkheadConfig()
        self._lock = threading.Lock()
        self._available = self.config.max_concurrent_calls
        self._waiters: Deque[_Waiter] = deque()
        self._rejected_calls = 0

    @property
    def available_concurrent_calls(self) -> int:
        return self._available

    @property
    def max_allowed_concurrent_calls(self) -> int:
        return self.config.max_concurrent_calls

    @property
    def metrics(self) -> Dict[str, Any]:
        """Get bulkhead metrics."""
        with self._lock:
            return {
                "name": self.name,
                "available_concurrent_calls": self._available,
                "max_allowed_concurrent_calls": self.config.max_concurrent_calls,
                "waiting_calls": len(self._waiters),
                "rejected_calls": self._rejected_calls,
            }

    def try_acquire_permission(self) -> bool:
        """Take a permit if one is free right now; never waits."""
        with self._lock:
            if self._available > 0:
                self._available -= 1
                return True
            return False

    async def acquire_permission(self) -> None:
        """
        Take a permit, waiting on the event loop up to max_wait_duration.

        Raises:
            BulkheadFullError: If no permit became available in time
        """
        waiter = self._enqueue(asyncio.get_running_loop())
        if waiter is None:
            return

        try:
            await asyncio.wait_for(waiter.future, timeout=self.config.max_wait_duration)
        except asyncio.TimeoutError:
            if self._withdraw(waiter):
                self._reject()
        except asyncio.CancelledError:
            if not self._withdraw(waiter):
                self.on_complete()
            raise

    def acquire_permission_blocking(self) -> None:
        """
        Take a permit, blocking the calling thread up to max_wait_duration.

        Raises:
            BulkheadFullError: If no permit became available in time
        """
        waiter = self._enqueue(None)
        if waiter is None:
            return

        if not waiter.event.wait(self.config.max_wait_duration) and self._withdraw(waiter):
            self._reject()

    def on_complete(self) -> None:
        """
        Release a permit.

        Raises:
            ValueError: If more permits are released than were acquired
        """
        with self._lock:
            if self._waiters:
                waiter = self._waiters.popleft()
                waiter.granted = True
            else:
                if self._available >= self.config.max_concurrent_calls:
                    raise ValueError(f"Bulkhead '{self.name}' released more permits than it granted")
                self._available += 1
                return
        waiter.wake()

    async def call(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """
        Execute an async callable while holding a bulkhead permit.

        The permit is released on every exit path, including cancellation.

        Raises:
            BulkheadFullError: If no permit was available; func is not invoked
        """
        await self.acquire_permission()
        try:
            return await func(*args, **kwargs)
        finally:
            self.on_complete()

    def call_sync(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Execute a plain (blocking) callable while holding a bulkhead permit."""
        self.acquire_permission_blocking()
        try:
            return func(*args, **kwargs)
        finally:
            self.on_complete()

    def decorate(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Return a callable with the same signature and shape guarded by this bulkhead."""
        if is_async_callable(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                return await self.call(func, *args, **kwargs)
        else:
            @wraps(func)
            def wrapper(*args, **kwargs):
                return self.call_sync(func, *args, **kwargs)

        return wrapper

    def _enqueue(self, loop: Optional[asyncio.AbstractEventLoop]) -> Optional[_Waiter]:
        """Take a free permit (returns None) or queue a waiter for one."""
        with self._lock:
            if self._available > 0:
                self._available -= 1
                return None
            if self.config.max_wait_duration > 0:
                waiter = _Waiter(loop)
                self._waiters.append(waiter)
                return waiter
        self._reject()

    def _withdraw(self, waiter: _Waiter) -> bool:
        """Leave the queue; False if on_complete already handed this waiter a permit."""
        with self._lock:
            if waiter.granted:
                return False
            self._waiters.remove(waiter)
            return True

    def _reject(self) -> None:
        with self._lock:
            self._rejected_calls += 1
        logger.warning(
            "bulkhead_full",
            bulkhead=self.name,
            max_concurrent=self.config.max_concurrent_calls,
            max_wait=self.config.max_wait_duration,
        )
        raise BulkheadFullError(
            self.name,
            self.config.max_concurrent_calls,
            self.config.max_wait_duration,
        )
