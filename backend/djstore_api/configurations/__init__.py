"""
Entity bindings.

Importing this package registers every binding; model assembly applies them.
Add the module of each new binding to the imports below.
"""

from .common import (
    BaseEntityConfiguration,
    DeletableEntityConfiguration,
    EntityTypeBuilder,
    PropertyBuilder,
    entity_configuration,
    hide_deleted_rows,
    registered_configurations,
)
from . import catalog, wishlist  # noqa: F401

__all__ = [
    "BaseEntityConfiguration",
    "DeletableEntityConfiguration",
    "EntityTypeBuilder",
    "PropertyBuilder",
    "entity_configuration",
    "hide_deleted_rows",
    "registered_configurations",
]
