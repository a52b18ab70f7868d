"""
CallGuard Core Library
======================
Fault-tolerance policies for calls to unreliable remote dependencies:
circuit breaker, bulkhead, retry and time limiter.

Each policy is built once from a validated config and decorates any async
or plain callable without the callable knowing about it; the wrapper has
the same shape as the operation. Policies are independent;
stack the decorators to combine them.

Usage:
    breaker = CircuitBreaker("pricing", CircuitBreakerConfig(sliding_window_size=20))
    limiter = TimeLimiter("pricing", TimeLimiterConfig(timeout_duration=2.0))

    get_price = breaker.decorate(limiter.decorate(pricing_client.get_price))
"""

__version__ = "0.1.0"

# Exceptions
from callguard_core.exceptions import (
    CallGuardError,
    InvalidConfigError,
    CallNotPermittedError,
    BulkheadFullError,
    TimeLimitExceededError,
)

# Circuit Breaker
from callguard_core.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
    circuit_breaker,
)

# Bulkhead
from callguard_core.bulkhead import (
    Bulkhead,
    BulkheadConfig,
    bulkhead,
)

# Retry
from callguard_core.retry import (
    Retry,
    RetryConfig,
    with_retry,
    fixed_interval,
    exponential_backoff,
    randomized,
)

# Time Limiter
from callguard_core.time_limiter import (
    TimeLimiter,
    TimeLimiterConfig,
    time_limiter,
)

# Outcomes
from callguard_core.outcome import (
    Outcome,
    OutcomeKind,
    capture,
)

# Registry
from callguard_core.registry import Registry

# Logging
from callguard_core.log import setup_logging, get_logger

__all__ = [
    "__version__",
    # Exceptions
    "CallGuardError",
    "InvalidConfigError",
    "CallNotPermittedError",
    "BulkheadFullError",
    "TimeLimitExceededError",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    "circuit_breaker",
    # Bulkhead
    "Bulkhead",
    "BulkheadConfig",
    "bulkhead",
    # Retry
    "Retry",
    "RetryConfig",
    "with_retry",
    "fixed_interval",
    "exponential_backoff",
    "randomized",
    # Time Limiter
    "TimeLimiter",
    "TimeLimiterConfig",
    "time_limiter",
    # Outcomes
    "Outcome",
    "OutcomeKind",
    "capture",
    # Registry
    "Registry",
    # Logging
    "setup_logging",
    "get_logger",
]
