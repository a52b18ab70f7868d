"""
Retry Models
============
Configuration for the retry policy.
"""

import os
from dataclasses import dataclass, fields
from typing import Any, Callable, Optional, Tuple, Type

from ..config import env_overrides
from ..exceptions import InvalidConfigError


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for a retry policy."""
    max_attempts: int = 3          # Includes the first attempt
    wait_duration: float = 0.5     # Seconds between attempts
    interval_function: Optional[Callable[[int], float]] = None  # attempt -> seconds, overrides wait_duration
    retry_exceptions: Tuple[Type[BaseException], ...] = (Exception,)
    ignore_exceptions: Tuple[Type[BaseException], ...] = ()
    retry_on_exception: Optional[Callable[[BaseException], bool]] = None
    retry_on_result: Optional[Callable[[Any], bool]] = None

    def __post_init__(self):
        if self.max_attempts < 1:
            raise InvalidConfigError("max_attempts", self.max_attempts, "must be at least 1")
        if self.wait_duration < 0:
            raise InvalidConfigError("wait_duration", self.wait_duration, "must not be negative")

    def should_retry(self, exc: BaseException) -> bool:
        """Classify a failure as retryable."""
        if self.retry_on_exception is not None:
            return bool(self.retry_on_exception(exc))
        if isinstance(exc, self.ignore_exceptions):
            return False
        return isinstance(exc, self.retry_exceptions)

    def interval(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        if self.interval_function is not None:
            return max(0.0, float(self.interval_function(attempt)))
        return self.wait_duration

    @classmethod
    def from_env(cls, prefix: str = "CALLGUARD_RETRY_") -> "RetryConfig":
        return cls(**env_overrides(fields(cls), prefix, os.environ))
