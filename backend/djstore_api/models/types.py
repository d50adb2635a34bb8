"""
Column types applied at the storage boundary.

- TrimmedString / TrimmedText: strip leading and trailing whitespace on write
  and on read, so stored and materialised text never carries padding.
- UtcDateTime: timezone-aware UTC datetimes on every backend (SQLite drops
  the offset, so naive values read back are tagged as UTC).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, String, Text
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator


def trim_text(value: Any) -> Any:
    """Strip surrounding whitespace from strings, pass anything else through."""
    if isinstance(value, str):
        return value.strip()
    return value


class TrimmedString(TypeDecorator):
    """VARCHAR whose values are trimmed on both write and read."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        return trim_text(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> Any:
        return trim_text(value)

    def process_literal_param(self, value: Any, dialect: Dialect) -> Any:
        return trim_text(value)

    @property
    def python_type(self) -> type:
        return str


class TrimmedText(TrimmedString):
    """TEXT whose values are trimmed on both write and read."""

    impl = Text
    cache_ok = True


class UtcDateTime(TypeDecorator):
    """Timezone-aware datetime normalised to UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def python_type(self) -> type:
        return datetime
