"""
Circuit Breaker Core
====================
The main CircuitBreaker class: a failure-rate state machine over a
count-based sliding window.
"""

import threading
import time
from functools import wraps
from typing import Optional, Dict, Any, Callable, TypeVar, Awaitable
import structlog

from ..callables import is_async_callable
from ..exceptions import CallNotPermittedError
from .models import CircuitState, CircuitBreakerConfig
from .window import OutcomeWindow

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CircuitBreaker:
    """
    Failure-rate circuit breaker.

    Every outcome recorded while CLOSED goes into a sliding window of the
    last ``sliding_window_size`` calls. Once the window holds the minimum
    sample, a failure rate at or above the threshold opens the circuit.
    After ``wait_duration_in_open_state`` the next permission check moves
    to HALF_OPEN, where a fresh trial window of
    ``permitted_calls_in_half_open_state`` calls decides between CLOSED
    and OPEN.

    Example:
        breaker = CircuitBreaker("identity-service")

        validate = breaker.decorate(identity_client.validate)
        try:
            result = await validate(token)
        except CallNotPermittedError:
            return fallback_value
    """

    def __init__(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._lock = threading.Lock()

        self._state = CircuitState.CLOSED
        # Bumped on every transition; outcomes of calls admitted under an
        # older epoch are discarded.
        self._epoch = 0
        self._window = self._new_closed_window()
        self._opened_at: Optional[float] = None
        self._half_open_remaining = 0
        self._not_permitted_calls = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> CircuitState:
        """Current circuit state (may transition from OPEN to HALF_OPEN)."""
        with self._lock:
            self._check_open_timeout()
            return self._state

    @property
    def metrics(self) -> Dict[str, Any]:
        """Get circuit breaker metrics."""
        with self._lock:
            return {
                "name": self.name,
                "state": self._state.value,
                "failure_rate": self._window.failure_rate,
                "buffered_calls": len(self._window),
                "failed_calls": self._window.failures,
                "successful_calls": self._window.successes,
                "not_permitted_calls": self._not_permitted_calls,
            }

    # ------------------------------------------------------------------
    # Permission / recording
    # ------------------------------------------------------------------

    def try_acquire_permission(self) -> bool:
        """
        Check whether a call would be admitted right now.

        This is a pure query: it never consumes a HALF_OPEN trial slot and
        needs no matching on_success/on_error. Use acquire_permission() to
        actually take a permission.
        """
        with self._lock:
            self._check_open_timeout()
            if self._state == CircuitState.CLOSED:
                return True
            return self._state == CircuitState.HALF_OPEN and self._half_open_remaining > 0

    def acquire_permission(self) -> int:
        """
        Acquire permission for one call.

        Returns:
            The state epoch to pass back to on_success/on_error

        Raises:
            CallNotPermittedError: If the circuit is OPEN or the HALF_OPEN
                trial quota is exhausted
        """
        epoch = self._acquire()
        if epoch is None:
            state, retry_after = self._rejection_details()
            logger.debug(
                "call_not_permitted",
                breaker=self.name,
                state=state.value,
                retry_after=retry_after,
            )
            raise CallNotPermittedError(self.name, state, retry_after)
        return epoch

    def release_permission(self, epoch: Optional[int] = None) -> None:
        """Give back a permission without recording an outcome."""
        with self._lock:
            if self._state != CircuitState.HALF_OPEN:
                return
            if epoch is not None and epoch != self._epoch:
                return
            self._half_open_remaining = min(
                self._half_open_remaining + 1,
                self.config.permitted_calls_in_half_open_state,
            )

    def on_success(self, epoch: Optional[int] = None) -> None:
        """Record a successful call."""
        self._record(False, epoch)

    def on_error(self, exc: BaseException, epoch: Optional[int] = None) -> None:
        """Record a failed call, honouring the ignore/record exception lists."""
        if self.config.is_ignored(exc):
            self.release_permission(epoch)
            return
        self._record(self.config.is_recorded(exc), epoch, exc)

    # ------------------------------------------------------------------
    # Decoration
    # ------------------------------------------------------------------

    async def call(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """
        Execute an async callable with circuit breaker protection.

        Args:
            func: Async operation to execute
            *args: Positional arguments for func
            **kwargs: Keyword arguments for func

        Returns:
            Result of func, unchanged

        Raises:
            CallNotPermittedError: If the call was short-circuited; func is
                not invoked in that case
        """
        epoch = self.acquire_permission()
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            self.on_error(e, epoch)
            raise
        except BaseException:
            # Cancellation, interpreter exit: no outcome, free the slot.
            self.release_permission(epoch)
            raise
        self.on_success(epoch)
        return result

    def call_sync(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Execute a plain (blocking) callable with circuit breaker protection."""
        epoch = self.acquire_permission()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self.on_error(e, epoch)
            raise
        except BaseException:
            self.release_permission(epoch)
            raise
        self.on_success(epoch)
        return result

    def decorate(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """
        Return a callable with the same signature guarded by this breaker.

        Coroutine functions get an async wrapper; plain callables get a
        plain wrapper.
        """
        if is_async_callable(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                return await self.call(func, *args, **kwargs)
        else:
            @wraps(func)
            def wrapper(*args, **kwargs):
                return self.call_sync(func, *args, **kwargs)

        return wrapper

    # ------------------------------------------------------------------
    # Manual transitions
    # ------------------------------------------------------------------

    def transition_to_closed_state(self) -> None:
        with self._lock:
            self._transition(CircuitState.CLOSED)

    def transition_to_open_state(self) -> None:
        with self._lock:
            self._transition(CircuitState.OPEN)

    def transition_to_half_open_state(self) -> None:
        with self._lock:
            self._transition(CircuitState.HALF_OPEN)

    def reset(self) -> None:
        """Reset to CLOSED with an empty window (for testing/admin)."""
        with self._lock:
            self._transition(CircuitState.CLOSED)
            self._not_permitted_calls = 0
        logger.info("circuit_reset", breaker=self.name)

    # ------------------------------------------------------------------
    # Internals (callers hold self._lock where noted)
    # ------------------------------------------------------------------

    def _new_closed_window(self) -> OutcomeWindow:
        return OutcomeWindow(self.config.sliding_window_size, self.config.minimum_calls)

    def _acquire(self) -> Optional[int]:
        with self._lock:
            self._check_open_timeout()

            if self._state == CircuitState.CLOSED:
                return self._epoch

            if self._state == CircuitState.HALF_OPEN and self._half_open_remaining > 0:
                self._half_open_remaining -= 1
                return self._epoch

            self._not_permitted_calls += 1
            return None

    def _rejection_details(self):
        with self._lock:
            if self._state == CircuitState.OPEN and self._opened_at is not None:
                elapsed = self._clock() - self._opened_at
                return self._state, max(0.0, self.config.wait_duration_in_open_state - elapsed)
            return self._state, 0.0

    def _check_open_timeout(self) -> None:
        # Lock held.
        if self._state != CircuitState.OPEN or self._opened_at is None:
            return
        elapsed = self._clock() - self._opened_at
        if elapsed >= self.config.wait_duration_in_open_state:
            self._transition(CircuitState.HALF_OPEN, after_seconds=elapsed)

    def _record(self, failed: bool, epoch: Optional[int], exc: Optional[BaseException] = None) -> None:
        with self._lock:
            if epoch is not None and epoch != self._epoch:
                logger.debug("outcome_discarded", breaker=self.name, state=self._state.value)
                return
            if self._state == CircuitState.OPEN:
                return

            failure_rate = self._window.record(failed)
            threshold = self.config.failure_rate_threshold

            if self._state == CircuitState.CLOSED:
                if failure_rate >= threshold:
                    self._transition(
                        CircuitState.OPEN,
                        failure_rate=failure_rate,
                        error=str(exc) if exc is not None else None,
                    )

            elif self._window.is_full:
                # HALF_OPEN: every trial call has reported
                if failure_rate >= threshold:
                    self._transition(CircuitState.OPEN, failure_rate=failure_rate, reopened=True)
                else:
                    self._transition(CircuitState.CLOSED, failure_rate=failure_rate)

    def _transition(self, new_state: CircuitState, reopened: bool = False, **context) -> None:
        # Lock held.
        previous = self._state
        self._state = new_state
        self._epoch += 1

        if new_state == CircuitState.CLOSED:
            self._window = self._new_closed_window()
            self._opened_at = None
            self._half_open_remaining = 0
            logger.info("circuit_closed", breaker=self.name, previous=previous.value, **context)

        elif new_state == CircuitState.OPEN:
            # The tripping window is kept so metrics still show why.
            self._opened_at = self._clock()
            self._half_open_remaining = 0
            event = "circuit_reopened" if reopened else "circuit_opened"
            logger.warning(event, breaker=self.name, previous=previous.value, **context)

        else:
            permitted = self.config.permitted_calls_in_half_open_state
            self._window = OutcomeWindow(permitted, permitted)
            self._half_open_remaining = permitted
            self._opened_at = None
            logger.info("circuit_half_open", breaker=self.name, previous=previous.value, **context)
