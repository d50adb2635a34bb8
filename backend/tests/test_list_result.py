"""
Tests for the ListResult envelope and the pagination helpers.
"""

import pytest
from pydantic import ValidationError

from djstore_api.routers._common.pagination import MAX_PAGE_SIZE, Pagination
from djstore_shared.utils.schemas import INT32_MAX, INT64_MAX, ListResult


class TestListResult:
    def test_defaults(self):
        result = ListResult()
        assert result.content == []
        assert result.total_count == 0
        assert result.total_pages == 0
        assert result.has_next_page is False

    def test_serialises_with_verbatim_field_names(self):
        result = ListResult[int](content=[1, 2], total_count=5, total_pages=3, has_next_page=True)
        assert result.to_json_dict() == {
            "Content": [1, 2],
            "TotalCount": 5,
            "TotalPages": 3,
            "HasNextPage": True,
        }

    def test_accepts_aliases_and_field_names(self):
        by_alias = ListResult[str](Content=["a"], TotalCount=1, TotalPages=1, HasNextPage=False)
        by_name = ListResult[str](content=["a"], total_count=1, total_pages=1, has_next_page=False)
        assert by_alias == by_name

    def test_is_immutable(self):
        result = ListResult[int](content=[1], total_count=1, total_pages=1)
        with pytest.raises(ValidationError):
            result.total_count = 2

    def test_bounds(self):
        ListResult(total_count=INT64_MAX, total_pages=INT32_MAX)
        with pytest.raises(ValidationError):
            ListResult(total_count=-1)
        with pytest.raises(ValidationError):
            ListResult(total_count=INT64_MAX + 1)
        with pytest.raises(ValidationError):
            ListResult(total_pages=INT32_MAX + 1)

    def test_content_items_are_validated(self):
        with pytest.raises(ValidationError):
            ListResult[int](content=["not a number"])

    def test_from_page_first_page(self):
        result = ListResult.from_page([1, 2], total_count=5, limit=2)
        assert result.total_pages == 3
        assert result.has_next_page is True

    def test_from_page_last_page(self):
        result = ListResult.from_page([5], total_count=5, limit=2, offset=4)
        assert result.total_pages == 3
        assert result.has_next_page is False

    def test_from_page_exact_fit(self):
        result = ListResult.from_page([1, 2, 3, 4], total_count=4, limit=2, offset=2)
        assert result.total_pages == 2
        assert result.has_next_page is False

    def test_from_page_empty(self):
        result = ListResult.from_page([], total_count=0, limit=10)
        assert result.total_pages == 0
        assert result.has_next_page is False

    @pytest.mark.parametrize("limit", [0, -1])
    def test_from_page_rejects_non_positive_limit(self, limit):
        with pytest.raises(ValueError):
            ListResult.from_page([], total_count=0, limit=limit)


class TestPagination:
    def test_limit_is_clamped(self):
        assert Pagination(limit=0, offset=0).limit == 1
        assert Pagination(limit=10_000, offset=0).limit == MAX_PAGE_SIZE

    def test_offset_is_never_negative(self):
        assert Pagination(limit=10, offset=-5).offset == 0
