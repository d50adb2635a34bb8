"""
DataContext: the query/command surface of the persistence layer.

One DataContext wraps one AsyncSession, i.e. one unit of work and one
connection lease. It is not safe for concurrent use by several tasks; the
FastAPI dependency scopes one instance per request.

Usage:
    async with DataContext(SessionLocal()) as ctx:
        product = Product(name=" Vinyl ", price=Decimal("9.99"), category_id=cid)
        ctx.create(product)
        await ctx.save()

        visible = await ctx.get(Product, product.id)            # honours the filter
        everything = await ctx.get_data(Product, ignore_query_filters=True).all()

    async def transfer() -> None:
        ...  # may run more than once: keep it restartable

    await ctx.execute_transaction(transfer)
"""

from __future__ import annotations

import uuid
from typing import Any, Awaitable, Callable, Iterable, Protocol, TypeVar

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from djstore_api.models.base import BaseEntity
from djstore_api.services.crud.errors import EntityStateError, TransactionInProgressError
from djstore_api.services.crud.execution_strategy import (
    ExecutionStrategy,
    create_execution_strategy,
)
from djstore_api.services.crud.interceptors import CLOCK_KEY, Clock, DataSession
from djstore_api.services.crud.query import EntityQuery
from djstore_shared.config.logging import data_access_logger as logger

E = TypeVar("E", bound=BaseEntity)
T = TypeVar("T")


class DataContextProtocol(Protocol):
    """Contract consumed by routers and services."""

    def create(self, entity: BaseEntity) -> None: ...

    def delete(self, entity: BaseEntity) -> None: ...

    def delete_all(self, entities: Iterable[BaseEntity]) -> None: ...

    async def exists(self, entity_type: type[E], id_or_criteria: Any) -> bool: ...

    async def get(
        self, entity_type: type[E], entity_id: uuid.UUID, *, include_deleted: bool = False
    ) -> E | None: ...

    def get_data(
        self,
        entity_type: type[E],
        *,
        ignore_query_filters: bool = False,
        tracking_changes: bool = False,
    ) -> EntityQuery[E]: ...

    async def save(self) -> None: ...

    async def execute_transaction(self, action: Callable[[], Awaitable[T]]) -> T: ...


class DataContext:
    """Unit of work over one AsyncSession."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        strategy: ExecutionStrategy | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._strategy = strategy or create_execution_strategy()
        self._transaction_active = False
        if clock is not None:
            session.sync_session.info[CLOCK_KEY] = clock

    @property
    def session(self) -> AsyncSession:
        return self._session

    @property
    def strategy(self) -> ExecutionStrategy:
        return self._strategy

    @property
    def in_transaction(self) -> bool:
        """True while execute_transaction is running an attempt."""
        return self._transaction_active

    async def __aenter__(self) -> DataContext:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the session and its connection lease."""
        await self._session.close()

    # -------------------------------------------------------------------------
    # Staging (synchronous)
    # -------------------------------------------------------------------------

    def create(self, entity: BaseEntity) -> None:
        """Stage an entity for insertion."""
        state = inspect(entity)
        if state.session_id is not None or state.key is not None:
            raise EntityStateError(
                f"{type(entity).__name__} is already attached or persisted and cannot be created"
            )
        self._session.add(entity)

    def delete(self, entity: BaseEntity) -> None:
        """
        Stage a physical deletion.

        Deletions of DeletableEntity instances are turned into logical
        deletions when the change set is flushed.
        """
        state = inspect(entity)
        if state.pending:
            # Never written: dropping it from the unit of work is the deletion
            self._session.expunge(entity)
            return
        if state.key is None:
            raise EntityStateError(f"{type(entity).__name__} is not persisted")
        if state.detached:
            self._session.add(entity)
        self._session.sync_session.delete(entity)

    def delete_all(self, entities: Iterable[BaseEntity]) -> None:
        for entity in entities:
            self.delete(entity)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_data(
        self,
        entity_type: type[E],
        *,
        ignore_query_filters: bool = False,
        tracking_changes: bool = False,
    ) -> EntityQuery[E]:
        """
        Lazy query over `entity_type`.

        With `tracking_changes=False` materialised rows are detached from the
        unit of work; rows sharing an id within one materialisation are the
        same instance.
        """
        return EntityQuery(
            context=self,
            entity=entity_type,
            ignore_query_filters=ignore_query_filters,
            tracking_changes=tracking_changes,
        )

    async def get(
        self,
        entity_type: type[E],
        entity_id: uuid.UUID,
        *,
        include_deleted: bool = False,
    ) -> E | None:
        """Row with that id, or None when it does not exist or is hidden."""
        query = self.get_data(entity_type, ignore_query_filters=include_deleted)
        return await query.where(entity_type.id == entity_id).first()

    async def exists(self, entity_type: type[E], id_or_criteria: Any) -> bool:
        """
        Whether a visible row matches.

        A UUID means `entity_type.id == id`; anything else is used as a
        boolean criterion on `entity_type`.
        """
        if isinstance(id_or_criteria, uuid.UUID):
            criterion = entity_type.id == id_or_criteria
        else:
            criterion = id_or_criteria
        return await self.get_data(entity_type).where(criterion).exists()

    async def load_entities(self, statement: Select, *, tracking: bool) -> list[Any]:
        if tracking:
            result = await self._session.scalars(statement)
            return list(result.unique().all())

        # Short-lived session on the same connection: same transaction,
        # separate identity map
        connection = await self._session.connection()
        reader = AsyncSession(
            bind=connection,
            sync_session_class=DataSession,
            autoflush=False,
            expire_on_commit=False,
        )
        try:
            result = await reader.scalars(statement)
            rows = list(result.unique().all())
            reader.expunge_all()
            return rows
        finally:
            await reader.close()

    async def load_scalar(self, statement: Select) -> Any:
        return await self._session.scalar(statement)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def save(self) -> None:
        """
        Commit the staged change set.

        Inside execute_transaction this only flushes; the commit happens when
        the action completes. On failure the session is rolled back and the
        error re-raised unchanged.
        """
        if self._transaction_active:
            await self._session.flush()
            return

        try:
            await self._session.commit()
        except BaseException:
            logger.warning("Save failed, rolling back", exc_info=True)
            await self._session.rollback()
            raise

    async def execute_transaction(self, action: Callable[[], Awaitable[T]]) -> T:
        """
        Run `action` in a transaction under the execution strategy.

        Each attempt runs `action` to completion and commits; a failed attempt
        is rolled back before the strategy decides whether to retry. `action`
        may therefore run more than once and must be restartable.
        """
        if self._transaction_active:
            raise TransactionInProgressError()

        async def attempt() -> T:
            self._transaction_active = True
            try:
                result = await action()
                await self._session.commit()
                return result
            except BaseException:
                await self._session.rollback()
                raise
            finally:
                self._transaction_active = False

        result = await self._strategy.execute(attempt)
        if self._strategy.last_attempt_count > 1:
            logger.info("Transaction committed", attempts=self._strategy.last_attempt_count)
        return result
