"""
Call Outcomes
=============
Tagged result of a guarded call.

Lets a caller tell apart "the operation succeeded", "the operation failed
with its own error" and "a policy intercepted the call" without a chain
of except clauses.

Usage:
    outcome = await capture(guarded_fetch, order_id)
    if outcome.kind is OutcomeKind.REJECTED:
        return cached_order(order_id)
    return outcome.unwrap()
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from .exceptions import BulkheadFullError, CallNotPermittedError, TimeLimitExceededError


class OutcomeKind(str, Enum):
    """How a guarded call ended."""
    SUCCESS = "success"
    FAILURE = "failure"      # The operation's own error
    REJECTED = "rejected"    # Short-circuited or bulkhead saturated; never invoked
    TIMEOUT = "timeout"      # Time limiter fired first


@dataclass(frozen=True)
class Outcome:
    """Result of a guarded call."""
    kind: OutcomeKind
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    def unwrap(self) -> Any:
        """Return the value, or re-raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value


def classify(error: BaseException) -> OutcomeKind:
    """Map an exception raised by a guarded call to an outcome kind."""
    if isinstance(error, (CallNotPermittedError, BulkheadFullError)):
        return OutcomeKind.REJECTED
    if isinstance(error, TimeLimitExceededError):
        return OutcomeKind.TIMEOUT
    return OutcomeKind.FAILURE


async def capture(guarded: Callable[..., Awaitable[Any]], *args, **kwargs) -> Outcome:
    """
    Await a guarded call and return its tagged outcome.

    Cancellation is not captured; it propagates.
    """
    try:
        value = await guarded(*args, **kwargs)
    except Exception as e:
        return Outcome(kind=classify(e), error=e)
    return Outcome(kind=OutcomeKind.SUCCESS, value=value)
