"""
Time Limiter
============
Upper bound on how long a caller waits for an async operation.
"""

from ..exceptions import TimeLimitExceededError
from .models import TimeLimiterConfig
from .limiter import TimeLimiter
from .decorators import time_limiter

__all__ = [
    "TimeLimiterConfig",
    "TimeLimitExceededError",
    "TimeLimiter",
    "time_limiter",
]
