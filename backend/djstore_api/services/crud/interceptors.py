"""
Session hooks of the data context.

- stamp_changes (before_flush): stamps audit dates on every new or modified
  entity and turns deletions of deletable entities into logical deletions.
- apply_query_filters (do_orm_execute): adds the global filter of every
  deletable entity to ORM SELECTs, unless the statement carries the
  `ignore_query_filters` execution option.

Both are registered on DataSession, the sync session class behind every
AsyncSession created by the data context.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy import event
from sqlalchemy.orm import ORMExecuteState, Session, UOWTransaction, with_loader_criteria

from djstore_api.models.base import BaseEntity, DeletableEntity
from djstore_api.services.crud.model_builder import build_store_model
from djstore_shared.config.logging import data_access_logger as logger

Clock = Callable[[], datetime]

CLOCK_KEY = "djstore.clock"
LAST_FLUSH_KEY = "djstore.last_flush_instant"
IGNORE_QUERY_FILTERS = "ignore_query_filters"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DataSession(Session):
    """Session class carrying the audit and filter hooks."""


def flush_instant(session: Session) -> datetime:
    """
    The instant stamped on every entity of the current flush.

    Never earlier than the instant of the previous flush of the same session.
    """
    clock: Clock = session.info.get(CLOCK_KEY, utc_now)
    now = clock()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    last = session.info.get(LAST_FLUSH_KEY)
    if last is not None and now < last:
        now = last
    session.info[LAST_FLUSH_KEY] = now
    return now


@event.listens_for(DataSession, "before_flush")
def stamp_changes(session: Session, flush_context: UOWTransaction, instances: Any) -> None:
    added = [obj for obj in session.new if isinstance(obj, BaseEntity)]
    modified = [
        obj
        for obj in session.dirty
        if isinstance(obj, BaseEntity) and session.is_modified(obj, include_collections=False)
    ]
    deleted = [obj for obj in session.deleted if isinstance(obj, BaseEntity)]

    if not (added or modified or deleted):
        return

    now = flush_instant(session)

    for obj in deleted:
        if isinstance(obj, DeletableEntity):
            obj.is_deleted = True
            obj.deleted_date = now
            # Re-adding a persistent instance cancels its pending DELETE
            session.add(obj)
            logger.debug("Delete rewritten as logical delete", entity=type(obj).__name__, id=str(obj.id))

    for obj in added:
        obj.creation_date = now
        obj.updated_date = None
        if isinstance(obj, DeletableEntity):
            obj.is_deleted = False
            obj.deleted_date = None

    for obj in modified:
        obj.updated_date = now
        if isinstance(obj, DeletableEntity):
            obj.is_deleted = False
            obj.deleted_date = None


@event.listens_for(DataSession, "do_orm_execute")
def apply_query_filters(execute_state: ORMExecuteState) -> None:
    if (
        not execute_state.is_select
        or execute_state.is_column_load
        or execute_state.is_relationship_load
    ):
        return
    if execute_state.execution_options.get(IGNORE_QUERY_FILTERS, False):
        return

    model = build_store_model()
    execute_state.statement = execute_state.statement.options(
        *(
            with_loader_criteria(entity, predicate, include_aliases=True)
            for entity, predicate in model.query_filters.items()
        )
    )
