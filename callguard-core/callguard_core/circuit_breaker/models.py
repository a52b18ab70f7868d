"""
Circuit Breaker Models
======================
Data models and enums for the circuit breaker pattern.
"""

import os
from dataclasses import dataclass, fields
from enum import Enum
from typing import Optional, Tuple, Type

from ..config import env_overrides
from ..exceptions import InvalidConfigError


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"        # Normal operation
    OPEN = "open"            # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing recovery


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Configuration for a circuit breaker."""
    failure_rate_threshold: float = 50.0           # Percent of failures that opens the circuit
    sliding_window_size: int = 100                 # Outcomes retained while CLOSED
    minimum_number_of_calls: Optional[int] = None  # Sample size before rating; None = full window
    wait_duration_in_open_state: float = 60.0      # Seconds to stay open before half-open
    permitted_calls_in_half_open_state: int = 10   # Trial calls allowed while half-open
    record_exceptions: Tuple[Type[BaseException], ...] = (Exception,)
    ignore_exceptions: Tuple[Type[BaseException], ...] = ()

    def __post_init__(self):
        if not 0 < self.failure_rate_threshold <= 100:
            raise InvalidConfigError(
                "failure_rate_threshold",
                self.failure_rate_threshold,
                "must be greater than 0 and at most 100",
            )
        if self.sliding_window_size < 1:
            raise InvalidConfigError(
                "sliding_window_size", self.sliding_window_size, "must be at least 1"
            )
        if self.minimum_number_of_calls is not None and self.minimum_number_of_calls < 1:
            raise InvalidConfigError(
                "minimum_number_of_calls",
                self.minimum_number_of_calls,
                "must be at least 1",
            )
        if self.wait_duration_in_open_state <= 0:
            raise InvalidConfigError(
                "wait_duration_in_open_state",
                self.wait_duration_in_open_state,
                "must be positive",
            )
        if self.permitted_calls_in_half_open_state < 1:
            raise InvalidConfigError(
                "permitted_calls_in_half_open_state",
                self.permitted_calls_in_half_open_state,
                "must be at least 1",
            )

    @property
    def minimum_calls(self) -> int:
        """Outcomes needed in the CLOSED window before the failure rate counts."""
        if self.minimum_number_of_calls is None:
            return self.sliding_window_size
        return min(self.minimum_number_of_calls, self.sliding_window_size)

    def is_ignored(self, exc: BaseException) -> bool:
        return isinstance(exc, self.ignore_exceptions)

    def is_recorded(self, exc: BaseException) -> bool:
        return isinstance(exc, self.record_exceptions)

    @classmethod
    def from_env(cls, prefix: str = "CALLGUARD_CIRCUIT_BREAKER_") -> "CircuitBreakerConfig":
        """Build a config from environment variables, e.g. CALLGUARD_CIRCUIT_BREAKER_SLIDING_WINDOW_SIZE."""
        return cls(**env_overrides(fields(cls), prefix, os.environ))
