"""Email address value object."""

from __future__ import annotations

import re
from dataclasses import dataclass

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class Email:
    """A normalised (trimmed, lower-cased) email address."""

    value: str

    def __post_init__(self) -> None:
        raw = self.value if isinstance(self.value, str) else ""
        normalized = raw.strip()
        if not EMAIL_PATTERN.match(normalized):
            raise ValueError(f"Invalid email address: {self.value}")
        object.__setattr__(self, "value", normalized.lower())

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return bool(EMAIL_PATTERN.match(value.strip()))

    @property
    def local_part(self) -> str:
        return self.value.split("@", 1)[0]

    @property
    def domain(self) -> str:
        return self.value.split("@", 1)[1]

    @property
    def masked(self) -> str:
        """Local part reduced to its first two characters, e.g. ``ta***@example.com``."""
        local = self.local_part
        if len(local) > 2:
            return f"{local[:2]}***@{self.domain}"
        return f"***@{self.domain}"

    def equals(self, other: Email | None) -> bool:
        return other is not None and self.value == other.value

    def __str__(self) -> str:
        return self.value
