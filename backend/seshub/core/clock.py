"""Timezone helpers.

SQLite drops tzinfo on round-trip while PostgreSQL keeps it, so values read
from the database go through ``as_utc`` before being compared.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
