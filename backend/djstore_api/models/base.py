"""
Base class and entity shapes for all SQLAlchemy ORM models.

Every persisted entity derives from one of two abstract shapes:

- BaseEntity: identity plus creation/update timestamps.
- DeletableEntity: BaseEntity plus the logical deletion flags. Rows are never
  physically removed; deleting one marks it and hides it from every query
  that does not explicitly ask for deleted rows.

The timestamps and flags are maintained by the before-flush hook of the data
context; callers never set them directly.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .types import TrimmedString, UtcDateTime


class Base(DeclarativeBase):
    """Base class for all models."""

    # Every `Mapped[str]` column is trimmed, every `Mapped[datetime]` is UTC
    type_annotation_map = {
        str: TrimmedString(),
        datetime: UtcDateTime(),
        uuid.UUID: Uuid(),
    }


class BaseEntity(Base):
    """
    Common shape of every persisted row.

    Fields:
    - id: generated on insert, never rewritten afterwards
    - creation_date: set once, on insert
    - updated_date: None after insert, the commit instant after each modification
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column("Id", Uuid, primary_key=True, default=uuid.uuid4)
    creation_date: Mapped[datetime] = mapped_column("CreationDate", UtcDateTime())
    updated_date: Mapped[Optional[datetime]] = mapped_column("UpdatedDate", UtcDateTime())

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class DeletableEntity(BaseEntity):
    """
    BaseEntity that supports logical deletion.

    `is_deleted` is False exactly when `deleted_date` is None.
    """

    __abstract__ = True

    is_deleted: Mapped[bool] = mapped_column("IsDeleted", Boolean, default=False)
    deleted_date: Mapped[Optional[datetime]] = mapped_column("DeletedDate", UtcDateTime())

    def __repr__(self) -> str:
        state = "deleted" if self.is_deleted else "active"
        return f"<{self.__class__.__name__}(id={self.id}, {state})>"
