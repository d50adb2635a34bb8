"""
Store model assembly.

`build_store_model()` runs once per process, before the schema is created
and before the first session executes a statement:

1. apply every registered entity binding to its mapped table;
2. collect the global filter of every DeletableEntity;
3. route every string column of every mapped entity through the trimming
   column types.

Usage:
    from djstore_api.services.crud.model_builder import build_store_model

    model = build_store_model()
    model.query_filters[Product]  # predicate hiding deleted products
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

from sqlalchemy import Enum, String, Text
from sqlalchemy.types import TypeDecorator

from djstore_api.models import Base, BaseEntity, DeletableEntity
from djstore_api.models.types import TrimmedString, TrimmedText
from djstore_shared.config.logging import data_access_logger as logger


@dataclass(frozen=True)
class StoreModel:
    """Result of model assembly. Immutable."""

    entities: tuple[type[BaseEntity], ...]
    query_filters: Mapping[type[BaseEntity], object] = field(
        default_factory=lambda: MappingProxyType({})
    )
    trimmed_columns: tuple[str, ...] = ()

    def is_filtered(self, entity: type[BaseEntity]) -> bool:
        return entity in self.query_filters


def _mapped_entities() -> tuple[type[BaseEntity], ...]:
    classes = [
        mapper.class_
        for mapper in Base.registry.mappers
        if issubclass(mapper.class_, BaseEntity)
    ]
    return tuple(sorted(classes, key=lambda cls: cls.__name__))


def _apply_trimming(entity: type[BaseEntity]) -> list[str]:
    """Swap plain string column types for their trimming counterparts."""
    trimmed = []
    table = entity.__table__
    for column in table.columns:
        column_type = column.type
        if isinstance(column_type, TrimmedString):
            trimmed.append(f"{table.name}.{column.name}")
            continue
        if isinstance(column_type, TypeDecorator) or isinstance(column_type, Enum):
            continue
        if isinstance(column_type, Text):
            column.type = TrimmedText()
        elif isinstance(column_type, String):
            column.type = TrimmedString(column_type.length)
        else:
            continue
        trimmed.append(f"{table.name}.{column.name}")
    return trimmed


@lru_cache(maxsize=1)
def build_store_model() -> StoreModel:
    """Assemble the store model (cached)."""
    # Importing the package registers every binding
    from djstore_api.configurations import (
        DeletableEntityConfiguration,
        EntityTypeBuilder,
        hide_deleted_rows,
        registered_configurations,
    )

    entities = _mapped_entities()
    configurations = registered_configurations()

    # 1. Bindings
    for entity in entities:
        config_cls = configurations.get(entity)
        if config_cls is None:
            logger.warning("Entity has no binding", entity=entity.__name__)
            continue
        config_cls().configure(EntityTypeBuilder(entity))

    # 2. Global filters
    query_filters = {}
    for entity in entities:
        if not issubclass(entity, DeletableEntity):
            continue
        config_cls = configurations.get(entity)
        if config_cls is not None and issubclass(config_cls, DeletableEntityConfiguration):
            query_filters[entity] = config_cls().query_filter()
        else:
            query_filters[entity] = hide_deleted_rows

    # 3. String normalisation
    trimmed_columns: list[str] = []
    for entity in entities:
        trimmed_columns.extend(_apply_trimming(entity))

    logger.info(
        "Store model assembled",
        entities=len(entities),
        filtered=len(query_filters),
        trimmed_columns=len(trimmed_columns),
    )

    return StoreModel(
        entities=entities,
        query_filters=MappingProxyType(query_filters),
        trimmed_columns=tuple(trimmed_columns),
    )
