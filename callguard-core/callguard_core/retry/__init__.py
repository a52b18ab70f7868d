"""
Retry
=====
Retry with fixed or backoff-derived waits for transient failures.
"""

from .models import RetryConfig
from .backoff import fixed_interval, exponential_backoff, randomized
from .policy import Retry
from .decorators import with_retry

__all__ = [
    "RetryConfig",
    # Backoff
    "fixed_interval",
    "exponential_backoff",
    "randomized",
    # Policy
    "Retry",
    "with_retry",
]
