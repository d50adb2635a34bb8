"""
Wishlist Models: WishlistItem.

Wishlist entries are not deletable entities; removing one deletes the row.
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseEntity


class WishlistItem(BaseEntity):
    """A product a customer wants to be notified about."""

    __tablename__ = "WishlistItems"

    product_id: Mapped[uuid.UUID] = mapped_column("ProductId", ForeignKey("Products.Id"))
    customer_email: Mapped[str] = mapped_column("CustomerEmail")
    note: Mapped[Optional[str]] = mapped_column("Note")
