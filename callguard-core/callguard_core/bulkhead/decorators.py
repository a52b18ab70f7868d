"""
Bulkhead Decorator
==================
Decorator for capping the concurrency of async or plain functions.
"""

from typing import Any, Callable

from .bulkhead import Bulkhead


def bulkhead(bh: Bulkhead):
    """
    Decorator to run async or plain functions inside a bulkhead.

    Example:
        reports = Bulkhead("reporting-db", BulkheadConfig(max_concurrent_calls=5))

        @bulkhead(reports)
        async def monthly_report(account_id: str):
            return await db.fetch_report(account_id)
    """
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        return bh.decorate(func)

    return decorator
