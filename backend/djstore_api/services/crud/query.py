"""
Lazy, composable query handle returned by DataContext.get_data().

Nothing touches the store until one of the materialisers (all, first,
one_or_none, count, exists, page) is awaited. Composition methods return a
new handle; the original is left untouched.

Usage:
    query = ctx.get_data(Product).where(Product.price < 100).order_by(Product.name)
    cheapest = await query.first()
    items, total = await query.page(offset=0, limit=20)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Generic, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import MultipleResultsFound
from sqlalchemy.sql import Select

from djstore_api.models.base import BaseEntity
from djstore_api.services.crud.interceptors import IGNORE_QUERY_FILTERS

if TYPE_CHECKING:
    from djstore_api.services.crud.data_context import DataContext

E = TypeVar("E", bound=BaseEntity)


@dataclass(frozen=True)
class EntityQuery(Generic[E]):
    context: DataContext
    entity: type[E]
    ignore_query_filters: bool = False
    tracking_changes: bool = False
    criteria: tuple[Any, ...] = ()
    ordering: tuple[Any, ...] = ()
    limit_count: int | None = None
    offset_count: int | None = None
    loader_options: tuple[Any, ...] = ()

    # -------------------------------------------------------------------------
    # Composition
    # -------------------------------------------------------------------------

    def where(self, *criteria: Any) -> EntityQuery[E]:
        return replace(self, criteria=self.criteria + criteria)

    def order_by(self, *clauses: Any) -> EntityQuery[E]:
        return replace(self, ordering=self.ordering + clauses)

    def limit(self, count: int | None) -> EntityQuery[E]:
        return replace(self, limit_count=count)

    def offset(self, count: int | None) -> EntityQuery[E]:
        return replace(self, offset_count=count)

    def options(self, *loader_options: Any) -> EntityQuery[E]:
        return replace(self, loader_options=self.loader_options + loader_options)

    def _filtered(self, statement: Select) -> Select:
        statement = statement.where(*self.criteria)
        if self.ignore_query_filters:
            statement = statement.execution_options(**{IGNORE_QUERY_FILTERS: True})
        return statement

    @property
    def statement(self) -> Select:
        """The SELECT this handle materialises."""
        statement = self._filtered(select(self.entity))
        if self.loader_options:
            statement = statement.options(*self.loader_options)
        if self.ordering:
            statement = statement.order_by(*self.ordering)
        if self.offset_count is not None:
            statement = statement.offset(self.offset_count)
        if self.limit_count is not None:
            statement = statement.limit(self.limit_count)
        return statement

    # -------------------------------------------------------------------------
    # Materialisation
    # -------------------------------------------------------------------------

    async def all(self) -> list[E]:
        return await self.context.load_entities(self.statement, tracking=self.tracking_changes)

    async def first(self) -> E | None:
        rows = await self.limit(1).all()
        return rows[0] if rows else None

    async def one_or_none(self) -> E | None:
        rows = await self.limit(2).all()
        if len(rows) > 1:
            raise MultipleResultsFound(
                f"Multiple {self.entity.__name__} rows were found when one or none was required"
            )
        return rows[0] if rows else None

    async def count(self) -> int:
        """Rows matching the criteria; ordering and paging are ignored."""
        statement = self._filtered(select(func.count(self.entity.id)))
        return await self.context.load_scalar(statement) or 0

    async def exists(self) -> bool:
        statement = self._filtered(select(self.entity.id)).limit(1)
        return await self.context.load_scalar(statement) is not None

    async def page(self, offset: int, limit: int) -> tuple[Sequence[E], int]:
        """One page of rows plus the total count before paging."""
        items = await self.offset(offset).limit(limit).all()
        total = await self.count()
        return items, total
