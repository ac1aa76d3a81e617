"""Inclusive date range value object."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta


def _as_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value[:10])
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid date: {value}") from exc


@dataclass(frozen=True)
class DateRange:
    """Closed interval ``[start, end]`` of calendar dates."""

    start: date
    end: date

    def __post_init__(self) -> None:
        start = _as_date(self.start)
        end = _as_date(self.end)
        if start > end:
            raise ValueError(
                "Invalid date range: start date must be before or equal to end date"
            )
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def months(self) -> int:
        """Whole months covered, counting a month only once its day is reached."""
        months = (self.end.year - self.start.year) * 12 + (
            self.end.month - self.start.month
        )
        if self.end.day < self.start.day:
            months -= 1
        return months

    def contains(self, value: date | datetime | str) -> bool:
        return self.start <= _as_date(value) <= self.end

    def overlaps(self, other: DateRange) -> bool:
        return self.start <= other.end and self.end >= other.start

    def equals(self, other: DateRange | None) -> bool:
        if other is None:
            return False
        return self.start == other.start and self.end == other.end

    def extend(self, days: int) -> DateRange:
        return DateRange(self.start, self.end + timedelta(days=days))

    def shorten(self, days: int) -> DateRange:
        return DateRange(self.start, self.end - timedelta(days=days))

    @property
    def is_active(self) -> bool:
        return self.contains(date.today())

    @property
    def is_past(self) -> bool:
        return self.end < date.today()

    @property
    def is_future(self) -> bool:
        return self.start > date.today()

    def __str__(self) -> str:
        return f"{self.start.isoformat()} 〜 {self.end.isoformat()}"
