"""
Policy Registry
===============
Name -> instance map for policies shared across a service.

Each Registry owns its instances; two registries never share state.

Usage:
    registry = Registry(circuit_breaker_config=CircuitBreakerConfig(sliding_window_size=20))

    breaker = registry.circuit_breaker("identity-service")
    assert registry.circuit_breaker("identity-service") is breaker
"""

import threading
from typing import Optional, Dict, Any
import structlog

from .bulkhead import Bulkhead, BulkheadConfig
from .circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from .retry import Retry, RetryConfig
from .time_limiter import TimeLimiter, TimeLimiterConfig

logger = structlog.get_logger(__name__)


class Registry:
    """Get-or-create store of named policy instances."""

    def __init__(
        self,
        circuit_breaker_config: Optional[CircuitBreakerConfig] = None,
        bulkhead_config: Optional[BulkheadConfig] = None,
        retry_config: Optional[RetryConfig] = None,
        time_limiter_config: Optional[TimeLimiterConfig] = None,
    ):
        self.circuit_breaker_config = circuit_breaker_config or CircuitBreakerConfig()
        self.bulkhead_config = bulkhead_config or BulkheadConfig()
        self.retry_config = retry_config or RetryConfig()
        self.time_limiter_config = time_limiter_config or TimeLimiterConfig()

        self._lock = threading.Lock()
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._bulkheads: Dict[str, Bulkhead] = {}
        self._retries: Dict[str, Retry] = {}
        self._time_limiters: Dict[str, TimeLimiter] = {}

    def circuit_breaker(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
    ) -> CircuitBreaker:
        """
        Get or create a circuit breaker.

        Args:
            name: Name of the downstream dependency
            config: Optional configuration (only used if creating new breaker)
        """
        with self._lock:
            if name not in self._breakers:
                self._breakers[name] = CircuitBreaker(name, config or self.circuit_breaker_config)
            return self._breakers[name]

    def bulkhead(self, name: str, config: Optional[BulkheadConfig] = None) -> Bulkhead:
        """Get or create a bulkhead."""
        with self._lock:
            if name not in self._bulkheads:
                self._bulkheads[name] = Bulkhead(name, config or self.bulkhead_config)
            return self._bulkheads[name]

    def retry(self, name: str, config: Optional[RetryConfig] = None) -> Retry:
        """Get or create a retry policy."""
        with self._lock:
            if name not in self._retries:
                self._retries[name] = Retry(name, config or self.retry_config)
            return self._retries[name]

    def time_limiter(self, name: str, config: Optional[TimeLimiterConfig] = None) -> TimeLimiter:
        """Get or create a time limiter."""
        with self._lock:
            if name not in self._time_limiters:
                self._time_limiters[name] = TimeLimiter(name, config or self.time_limiter_config)
            return self._time_limiters[name]

    def get_all_metrics(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """Get metrics for every registered breaker, bulkhead and retry."""
        with self._lock:
            return {
                "circuit_breakers": {n: b.metrics for n, b in self._breakers.items()},
                "bulkheads": {n: b.metrics for n, b in self._bulkheads.items()},
                "retries": {n: r.metrics for n, r in self._retries.items()},
            }

    def reset_breaker(self, name: str) -> None:
        """Reset a circuit breaker to closed state (for testing/admin)."""
        with self._lock:
            breaker = self._breakers.get(name)
        if breaker is not None:
            breaker.reset()
        else:
            logger.debug("circuit_reset_unknown", breaker=name)

    def reset_all_breakers(self) -> None:
        """Reset all circuit breakers to closed state."""
        with self._lock:
            breakers = list(self._breakers.values())
        for breaker in breakers:
            breaker.reset()
