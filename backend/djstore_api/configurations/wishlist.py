"""
Bindings for the wishlist entities.
"""

from djstore_api.models.wishlist import WishlistItem

from .common import BaseEntityConfiguration, EntityTypeBuilder, entity_configuration


@entity_configuration
class WishlistItemConfiguration(BaseEntityConfiguration[WishlistItem]):
    entity = WishlistItem

    def configure(self, builder: EntityTypeBuilder[WishlistItem]) -> None:
        super().configure(builder)
        builder.property("product_id").is_required()
        builder.property("customer_email").is_required().has_max_length(254)
        builder.property("note").is_required(False).has_max_length(500)
        builder.has_index("product_id")
        builder.has_index("customer_email")
