"""
Outcome Window
==============
Fixed-capacity record of the most recent call outcomes.
"""

from collections import deque
from typing import Deque


class OutcomeWindow:
    """
    Count-based sliding window over call outcomes.

    Keeps the last ``capacity`` outcomes and a running failure count so the
    failure rate is O(1) per recorded call.
    """

    def __init__(self, capacity: int, minimum_calls: int):
        self.capacity = capacity
        self.minimum_calls = min(minimum_calls, capacity)
        self._outcomes: Deque[bool] = deque(maxlen=capacity)  # True = failure
        self._failures = 0

    def __len__(self) -> int:
        return len(self._outcomes)

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def successes(self) -> int:
        return len(self._outcomes) - self._failures

    @property
    def is_full(self) -> bool:
        return len(self._outcomes) == self.capacity

    @property
    def has_minimum_calls(self) -> bool:
        return len(self._outcomes) >= self.minimum_calls

    def record(self, failed: bool) -> float:
        """Record one outcome and return the resulting failure rate."""
        if len(self._outcomes) == self.capacity and self._outcomes[0]:
            self._failures -= 1
        self._outcomes.append(failed)
        if failed:
            self._failures += 1
        return self.failure_rate

    @property
    def failure_rate(self) -> float:
        """Failure percentage over the occupied window, -1.0 below the minimum sample."""
        if not self._outcomes or not self.has_minimum_calls:
            return -1.0
        return self._failures / len(self._outcomes) * 100.0

    def reset(self) -> None:
        self._outcomes.clear()
        self._failures = 0
