"""
Retry Backoff
=============
Interval functions for RetryConfig.interval_function.

Each returns a callable mapping the 1-based number of the attempt that
just failed to the number of seconds to wait before the next one.
"""

import random
from typing import Callable, Optional

IntervalFunction = Callable[[int], float]


def fixed_interval(wait: float) -> IntervalFunction:
    """Same wait after every attempt."""
    def interval(attempt: int) -> float:
        return wait
    return interval


def exponential_backoff(
    initial: float = 0.5,
    multiplier: float = 2.0,
    max_interval: Optional[float] = None,
) -> IntervalFunction:
    """
    Exponential backoff: initial, initial*multiplier, initial*multiplier^2, ...

    Args:
        initial: Wait after the first failed attempt
        multiplier: Growth factor per attempt
        max_interval: Optional cap on any single wait
    """
    if initial < 0 or multiplier < 1:
        raise ValueError("initial must be >= 0 and multiplier >= 1")

    def interval(attempt: int) -> float:
        delay = initial * (multiplier ** (attempt - 1))
        if max_interval is not None:
            delay = min(delay, max_interval)
        return delay
    return interval


def randomized(
    interval_fn: IntervalFunction,
    randomization_factor: float = 0.5,
    rng: Callable[[], float] = random.random,
) -> IntervalFunction:
    """
    Add jitter to another interval function.

    The result is spread uniformly over base * (1 +/- randomization_factor).
    """
    if not 0 <= randomization_factor < 1:
        raise ValueError("randomization_factor must be in [0, 1)")

    def interval(attempt: int) -> float:
        base = interval_fn(attempt)
        delta = base * randomization_factor
        return base - delta + rng() * 2 * delta
    return interval
