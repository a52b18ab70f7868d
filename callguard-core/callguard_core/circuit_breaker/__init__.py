"""
Circuit Breaker
===============
Failure-rate circuit breaker for calls to unreliable dependencies.

States:

1. CLOSED: Normal operation, outcomes are recorded into a sliding window
2. OPEN: Failure rate reached the threshold, calls are short-circuited
3. HALF-OPEN: A limited number of trial calls probe the dependency

Usage:
    from callguard_core.circuit_breaker import CircuitBreaker, circuit_breaker

    breaker = CircuitBreaker("identity-service")

    @circuit_breaker(breaker)
    async def call_identity_service():
        return await client.get("/v1/validate")
"""

from ..exceptions import CallNotPermittedError

from .models import (
    CircuitState,
    CircuitBreakerConfig,
)

from .window import OutcomeWindow

from .breaker import CircuitBreaker

from .decorators import circuit_breaker

__all__ = [
    # Models
    "CircuitState",
    "CircuitBreakerConfig",
    "CallNotPermittedError",
    "OutcomeWindow",
    # Breaker
    "CircuitBreaker",
    # Decorator
    "circuit_breaker",
]
