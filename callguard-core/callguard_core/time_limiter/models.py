"""
Time Limiter Models
===================
Configuration for the time limiter.
"""

import os
from dataclasses import dataclass, fields

from ..config import env_overrides
from ..exceptions import InvalidConfigError


@dataclass(frozen=True)
class TimeLimiterConfig:
    """Configuration for a time limiter."""
    timeout_duration: float = 1.0        # Seconds before the call fails
    cancel_running_future: bool = True   # Cancel the operation on timeout

    def __post_init__(self):
        if self.timeout_duration <= 0:
            raise InvalidConfigError(
                "timeout_duration", self.timeout_duration, "must be positive"
            )

    @classmethod
    def from_env(cls, prefix: str = "CALLGUARD_TIME_LIMITER_") -> "TimeLimiterConfig":
        return cls(**env_overrides(fields(cls), prefix, os.environ))
