"""
Shared Pydantic schemas used across the application.
"""

from __future__ import annotations

import math
from typing import Generic, Sequence, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

INT64_MAX = 2**63 - 1
INT32_MAX = 2**31 - 1


# =============================================================================
# List Results
# =============================================================================


class ListResult(BaseModel, Generic[T]):
    """
    Envelope for paginated list responses.

    Serialised with the field names Content, TotalCount, TotalPages and
    HasNextPage; construct it with either the aliases or the field names.
    """

    content: list[T] = Field(default_factory=list, alias="Content")
    total_count: int = Field(default=0, ge=0, le=INT64_MAX, alias="TotalCount")
    total_pages: int = Field(default=0, ge=0, le=INT32_MAX, alias="TotalPages")
    has_next_page: bool = Field(default=False, alias="HasNextPage")

    model_config = {"populate_by_name": True, "frozen": True}

    @classmethod
    def from_page(
        cls,
        items: Sequence[T],
        total_count: int,
        limit: int,
        offset: int = 0,
    ) -> ListResult[T]:
        """
        Build the envelope for one page of a query.

        Args:
            items: Rows of the requested page.
            total_count: Rows matching the query before pagination.
            limit: Page size (must be positive).
            offset: Rows skipped before this page.
        """
        if limit <= 0:
            raise ValueError("limit must be positive")
        total_pages = math.ceil(total_count / limit) if total_count else 0
        return cls(
            content=list(items),
            total_count=total_count,
            total_pages=total_pages,
            has_next_page=offset + len(items) < total_count,
        )

    def to_json_dict(self) -> dict:
        """Serialise with the verbatim field names, omitting absent values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
