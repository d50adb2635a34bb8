"""
Catalog Models: Category, Product.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import DeletableEntity


class Category(DeletableEntity):
    """
    Product category (turntables, mixers, vinyl, ...).
    Inherits: id, creation/updated dates and the deletion flags.
    """

    __tablename__ = "Categories"

    name: Mapped[str] = mapped_column("Name")
    description: Mapped[Optional[str]] = mapped_column("Description")

    # Relationships (load explicitly with selectinload)
    products: Mapped[list["Product"]] = relationship(
        back_populates="category", lazy="raise", passive_deletes=True
    )


class Product(DeletableEntity):
    """
    Sellable product.
    Inherits: id, creation/updated dates and the deletion flags.
    """

    __tablename__ = "Products"

    name: Mapped[str] = mapped_column("Name")
    description: Mapped[Optional[str]] = mapped_column("Description", Text)
    price: Mapped[Decimal] = mapped_column("Price", Numeric(12, 2))
    category_id: Mapped[uuid.UUID] = mapped_column("CategoryId", ForeignKey("Categories.Id"))

    category: Mapped["Category"] = relationship(back_populates="products", lazy="raise")
