"""
Bindings for the catalog entities.
"""

from djstore_api.models.catalog import Category, Product

from .common import (
    DeletableEntityConfiguration,
    EntityTypeBuilder,
    entity_configuration,
)


@entity_configuration
class CategoryConfiguration(DeletableEntityConfiguration[Category]):
    entity = Category

    def configure(self, builder: EntityTypeBuilder[Category]) -> None:
        super().configure(builder)
        builder.property("name").is_required().has_max_length(100)
        builder.property("description").is_required(False).has_max_length(500)


@entity_configuration
class ProductConfiguration(DeletableEntityConfiguration[Product]):
    entity = Product

    def configure(self, builder: EntityTypeBuilder[Product]) -> None:
        super().configure(builder)
        builder.property("name").is_required().has_max_length(200)
        builder.property("description").is_required(False).is_unbounded_text()
        builder.property("price").is_required()
        builder.property("category_id").is_required()
        builder.has_index("category_id")
        builder.has_check_constraint("Price", '"Price" >= 0')
