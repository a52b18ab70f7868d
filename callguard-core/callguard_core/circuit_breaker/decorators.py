"""
Circuit Breaker Decorator
=========================
Decorator for wrapping functions with circuit breaker protection.
"""

from functools import wraps
from typing import Optional, Any, Callable
import structlog

from ..callables import is_async_callable
from ..exceptions import CallNotPermittedError
from .breaker import CircuitBreaker

logger = structlog.get_logger(__name__)


def circuit_breaker(
    breaker: CircuitBreaker,
    fallback: Optional[Callable[..., Any]] = None,
):
    """
    Decorator to wrap async or plain functions with a circuit breaker.

    The fallback, if given, is called with the original arguments only when
    the breaker short-circuits the call. Failures of the operation itself
    still propagate.

    Example:
        identity_breaker = CircuitBreaker("identity-service")

        @circuit_breaker(identity_breaker)
        async def validate_token(token: str):
            return await identity_client.validate(token)

        @circuit_breaker(sms_breaker, fallback=queue_for_later)
        async def send_sms(to: str, body: str):
            return await sms_client.send(to=to, body=body)
    """
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        guarded = breaker.decorate(func)

        if fallback is None:
            return guarded

        if is_async_callable(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                try:
                    return await guarded(*args, **kwargs)
                except CallNotPermittedError:
                    logger.debug("circuit_fallback", breaker=breaker.name)
                    return await fallback(*args, **kwargs)
        else:
            @wraps(func)
            def wrapper(*args, **kwargs):
                try:
                    return guarded(*args, **kwargs)
                except CallNotPermittedError:
                    logger.debug("circuit_fallback", breaker=breaker.name)
                    return fallback(*args, **kwargs)

        return wrapper

    return decorator
