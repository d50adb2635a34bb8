"""
Utilities module: exceptions, health checks, schemas.
"""

from djstore_shared.utils.exceptions import (
    NotFoundError,
    ValidationError,
)
from djstore_shared.utils.schemas import ListResult

__all__ = [
    # exceptions
    "NotFoundError",
    "ValidationError",
    # schemas
    "ListResult",
]
