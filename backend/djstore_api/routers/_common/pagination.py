"""
Standardized pagination for all routers.

Usage:
    from djstore_api.routers._common.pagination import Pagination, get_pagination, to_list_result

    @router.get("/products", response_model=ListResult[ProductOutput])
    async def list_products(
        pagination: Pagination = Depends(get_pagination),
        ctx: DataContextProtocol = Depends(get_data_context),
    ):
        query = ctx.get_data(Product).order_by(Product.name)
        return await to_list_result(query, pagination, ProductOutput.model_validate)
"""

from dataclasses import dataclass
from typing import Any, Callable, Final, TypeVar

from fastapi import Query

from djstore_api.services.crud.query import EntityQuery
from djstore_shared.utils.schemas import ListResult

T = TypeVar("T")

DEFAULT_PAGE_SIZE: Final[int] = 50
MAX_PAGE_SIZE: Final[int] = 200


@dataclass
class Pagination:
    """
    Pagination parameters with validation.

    Attributes:
        limit: Maximum items per page (1 to max_limit)
        offset: Number of items to skip
        max_limit: Maximum allowed limit
    """

    limit: int
    offset: int
    max_limit: int = MAX_PAGE_SIZE

    def __post_init__(self):
        """Validate and normalize values."""
        self.limit = min(max(1, self.limit), self.max_limit)
        self.offset = max(0, self.offset)


def get_pagination(
    limit: int = Query(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description="Maximum number of items to return",
    ),
    offset: int = Query(
        default=0,
        ge=0,
        description="Number of items to skip",
    ),
) -> Pagination:
    """
    FastAPI dependency for pagination.

    Usage:
        @router.get("/items")
        async def list_items(pagination: Pagination = Depends(get_pagination)):
            ...
    """
    return Pagination(limit=limit, offset=offset)


async def to_list_result(
    query: EntityQuery,
    pagination: Pagination,
    transform: Callable[[Any], T] | None = None,
) -> ListResult[T]:
    """Materialise one page of `query` as a ListResult."""
    items, total = await query.page(pagination.offset, pagination.limit)
    content = [transform(item) for item in items] if transform else list(items)
    return ListResult.from_page(content, total, pagination.limit, pagination.offset)
