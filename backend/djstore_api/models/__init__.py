"""
SQLAlchemy ORM Models Package.

Models are organized into domain-specific modules:
- base: Base class, BaseEntity and DeletableEntity shapes
- types: Trimmed string and UTC datetime column types
- catalog: Category, Product
- wishlist: WishlistItem
"""

# Base classes
from .base import Base, BaseEntity, DeletableEntity

# Column types
from .types import TrimmedString, TrimmedText, UtcDateTime

# Catalog
from .catalog import Category, Product

# Wishlist
from .wishlist import WishlistItem

__all__ = [
    # Base
    "Base",
    "BaseEntity",
    "DeletableEntity",
    # Types
    "TrimmedString",
    "TrimmedText",
    "UtcDateTime",
    # Catalog
    "Category",
    "Product",
    # Wishlist
    "WishlistItem",
]
