"""
Common utilities shared across routers.
"""

from .pagination import (
    Pagination,
    get_pagination,
    to_list_result,
)

__all__ = [
    "Pagination",
    "get_pagination",
    "to_list_result",
]
