"""
Policy Exceptions
=================
Exception classes raised by the policies themselves.

Errors raised by a guarded operation are never wrapped; only the
conditions a policy governs surface as one of these.
"""

from typing import Optional, Any


class CallGuardError(Exception):
    """Base exception for all errors raised by a policy."""


class InvalidConfigError(CallGuardError, ValueError):
    """Raised when a policy configuration value is out of range."""

    def __init__(self, field_name: str, value: Any, reason: str):
        self.field_name = field_name
        self.value = value
        super().__init__(f"Invalid {field_name}={value!r}: {reason}")


class CallNotPermittedError(CallGuardError):
    """Raised when a circuit breaker short-circuits a call."""

    def __init__(self, breaker_name: str, state: Any, retry_after: float = 0.0):
        self.breaker_name = breaker_name
        self.state = state
        self.retry_after = retry_after
        state_value = getattr(state, "value", state)
        super().__init__(
            f"Circuit breaker '{breaker_name}' is {state_value} and does not "
            f"permit further calls. Retry after {retry_after:.1f}s"
        )


class BulkheadFullError(CallGuardError):
    """Raised when no bulkhead permit became available in time."""

    def __init__(
        self,
        bulkhead_name: str,
        max_concurrent_calls: int,
        max_wait_duration: float = 0.0,
    ):
        self.bulkhead_name = bulkhead_name
        self.max_concurrent_calls = max_concurrent_calls
        self.max_wait_duration = max_wait_duration
        super().__init__(
            f"Bulkhead '{bulkhead_name}' is full "
            f"(max concurrent: {max_concurrent_calls}, "
            f"waited: {max_wait_duration:.3f}s)"
        )


class TimeLimitExceededError(CallGuardError, TimeoutError):
    """Raised when a time-limited operation did not complete in time."""

    def __init__(self, limiter_name: str, timeout_seconds: float, operation: Optional[str] = None):
        self.limiter_name = limiter_name
        self.timeout_seconds = timeout_seconds
        self.operation = operation
        target = f" '{operation}'" if operation else ""
        super().__init__(
            f"Time limiter '{limiter_name}': operation{target} did not "
            f"complete within {timeout_seconds:.3f}s"
        )
