"""
Bulkhead
========
Concurrency cap isolating one dependency's saturation from the rest
of the service.
"""

from ..exceptions import BulkheadFullError
from .models import BulkheadConfig
from .bulkhead import Bulkhead
from .decorators import bulkhead

__all__ = [
    "BulkheadConfig",
    "BulkheadFullError",
    "Bulkhead",
    "bulkhead",
]
