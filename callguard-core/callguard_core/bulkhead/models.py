"""
Bulkhead Models
===============
Configuration for the concurrency bulkhead.
"""

import os
from dataclasses import dataclass, fields

from ..config import env_overrides
from ..exceptions import InvalidConfigError


@dataclass(frozen=True)
class BulkheadConfig:
    """Configuration for a bulkhead."""
    max_concurrent_calls: int = 25     # Permits in the pool
    max_wait_duration: float = 0.0     # Seconds to wait for a permit; 0 = fail fast

    def __post_init__(self):
        if self.max_concurrent_calls < 1:
            raise InvalidConfigError(
                "max_concurrent_calls", self.max_concurrent_calls, "must be at least 1"
            )
        if self.max_wait_duration < 0:
            raise InvalidConfigError(
                "max_wait_duration", self.max_wait_duration, "must not be negative"
            )

    @classmethod
    def from_env(cls, prefix: str = "CALLGUARD_BULKHEAD_") -> "BulkheadConfig":
        return cls(**env_overrides(fields(cls), prefix, os.environ))
