"""
Entity bindings: per-entity schema detail declared against the mapped table.

Each entity gets one binding class deriving from the template matching its
shape, and registers it with `@entity_configuration`:

    @entity_configuration
    class ProductConfiguration(DeletableEntityConfiguration):
        entity = Product

        def configure(self, builder: EntityTypeBuilder) -> None:
            super().configure(builder)
            builder.property("name").is_required().has_max_length(200)

Bindings run once, during model assembly, before the schema is created.
Every builder call is idempotent.
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Generic, TypeVar

from sqlalchemy import CheckConstraint, Column, Index, String, and_, inspect
from sqlalchemy.sql.elements import ColumnElement

from djstore_api.models.base import BaseEntity, DeletableEntity
from djstore_api.models.types import TrimmedString, TrimmedText
from djstore_api.services.crud.errors import ModelConfigurationError

EntityT = TypeVar("EntityT", bound=BaseEntity)

QueryFilter = Callable[[Any], ColumnElement[bool]]


class PropertyBuilder:
    """Column-level detail for one mapped attribute."""

    def __init__(self, entity: type[BaseEntity], name: str, column: Column):
        self.entity = entity
        self.name = name
        self.column = column

    def is_required(self, required: bool = True) -> PropertyBuilder:
        if self.column.primary_key and not required:
            raise ModelConfigurationError(
                f"{self.entity.__name__}.{self.name} is a key and cannot be optional"
            )
        self.column.nullable = not required
        return self

    def has_max_length(self, length: int) -> PropertyBuilder:
        if not isinstance(self.column.type, (String, TrimmedString)):
            raise ModelConfigurationError(
                f"{self.entity.__name__}.{self.name} is not a string column"
            )
        self.column.type = TrimmedString(length)
        return self

    def is_unbounded_text(self) -> PropertyBuilder:
        if not isinstance(self.column.type, (String, TrimmedString)):
            raise ModelConfigurationError(
                f"{self.entity.__name__}.{self.name} is not a string column"
            )
        self.column.type = TrimmedText()
        return self

    def value_generated_on_add(self) -> PropertyBuilder:
        if self.column.default is None and self.column.server_default is None:
            raise ModelConfigurationError(
                f"{self.entity.__name__}.{self.name} has no value generator"
            )
        return self


class EntityTypeBuilder(Generic[EntityT]):
    """Schema detail for one mapped entity."""

    def __init__(self, entity: type[EntityT]):
        self.entity = entity
        self.mapper = inspect(entity)
        self.table = self.mapper.local_table

    def _column(self, name: str) -> Column:
        try:
            return self.mapper.columns[name]
        except KeyError:
            raise ModelConfigurationError(
                f"{self.entity.__name__} has no mapped column '{name}'"
            ) from None

    def property(self, name: str) -> PropertyBuilder:
        """Builder for the column mapped to attribute `name`."""
        return PropertyBuilder(self.entity, name, self._column(name))

    def has_key(self, name: str) -> EntityTypeBuilder[EntityT]:
        """Require `name` to be the sole primary key column."""
        column = self._column(name)
        primary_key = list(self.table.primary_key.columns)
        if primary_key != [column]:
            raise ModelConfigurationError(
                f"{self.entity.__name__} must use '{name}' as its only primary key"
            )
        return self

    def has_index(self, *names: str, unique: bool = False) -> EntityTypeBuilder[EntityT]:
        columns = [self._column(name) for name in names]
        index_name = "IX_{}_{}".format(self.table.name, "_".join(c.name for c in columns))
        if not any(index.name == index_name for index in self.table.indexes):
            # Table-bound columns attach the index to the table
            Index(index_name, *columns, unique=unique)
        return self

    def has_check_constraint(self, name: str, sqltext: str) -> EntityTypeBuilder[EntityT]:
        constraint_name = f"CK_{self.table.name}_{name}"
        if not any(c.name == constraint_name for c in self.table.constraints):
            self.table.append_constraint(CheckConstraint(sqltext, name=constraint_name))
        return self


# =============================================================================
# Binding templates
# =============================================================================


class BaseEntityConfiguration(Generic[EntityT]):
    """Binding template for every BaseEntity."""

    entity: ClassVar[type[BaseEntity]]

    def configure(self, builder: EntityTypeBuilder[EntityT]) -> None:
        builder.has_key("id")
        builder.property("id").value_generated_on_add()
        builder.property("creation_date").is_required()
        builder.property("updated_date").is_required(False)


def hide_deleted_rows(cls: Any) -> ColumnElement[bool]:
    """Global filter for deletable entities: not deleted and no deletion date."""
    return and_(cls.is_deleted.is_(False), cls.deleted_date.is_(None))


class DeletableEntityConfiguration(BaseEntityConfiguration[EntityT]):
    """Binding template for every DeletableEntity."""

    def configure(self, builder: EntityTypeBuilder[EntityT]) -> None:
        builder.property("is_deleted").is_required()
        builder.property("deleted_date").is_required(False)
        super().configure(builder)

    def query_filter(self) -> QueryFilter:
        """Predicate installed as the global filter of the entity."""
        return hide_deleted_rows


# =============================================================================
# Registration
# =============================================================================


_registered: dict[type[BaseEntity], type[BaseEntityConfiguration]] = {}


def entity_configuration(
    config_cls: type[BaseEntityConfiguration],
) -> type[BaseEntityConfiguration]:
    """Class decorator registering a binding for model assembly."""
    entity = getattr(config_cls, "entity", None)
    if entity is None:
        raise ModelConfigurationError(f"{config_cls.__name__} does not declare an entity")
    if issubclass(entity, DeletableEntity) and not issubclass(
        config_cls, DeletableEntityConfiguration
    ):
        raise ModelConfigurationError(
            f"{config_cls.__name__} must derive from DeletableEntityConfiguration"
        )
    existing = _registered.get(entity)
    if existing is not None and existing is not config_cls:
        raise ModelConfigurationError(
            f"{entity.__name__} is already bound by {existing.__name__}"
        )
    _registered[entity] = config_cls
    return config_cls


def registered_configurations() -> dict[type[BaseEntity], type[BaseEntityConfiguration]]:
    return dict(_registered)
