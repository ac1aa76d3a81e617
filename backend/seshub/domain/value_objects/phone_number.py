"""Phone number value object with Japanese formatting rules."""

from __future__ import annotations

import re
from dataclasses import dataclass

JP_PHONE_PATTERN = re.compile(r"^(0[3-9]0?\d{8}|050\d{8})$")
GENERAL_PHONE_PATTERN = re.compile(r"^\d{7,15}$")
_SEPARATORS = re.compile(r"[-\s()]")

MOBILE_PREFIXES = ("070", "080", "090")


def _normalize(value: str) -> str:
    return _SEPARATORS.sub("", value)


@dataclass(frozen=True)
class PhoneNumber:
    """Digits-only phone number. Separators are stripped on construction."""

    value: str
    country_code: str = "JP"

    def __post_init__(self) -> None:
        normalized = _normalize(self.value)
        if not self.is_valid(normalized, self.country_code):
            raise ValueError(f"Invalid phone number: {self.value}")
        object.__setattr__(self, "value", normalized)

    @staticmethod
    def is_valid(value: str, country_code: str = "JP") -> bool:
        normalized = _normalize(value)
        if country_code == "JP":
            return bool(JP_PHONE_PATTERN.match(normalized))
        return bool(GENERAL_PHONE_PATTERN.match(normalized))

    @property
    def formatted(self) -> str:
        v = self.value
        if self.country_code != "JP":
            return v

        # IP phones and mobiles: 0X0-XXXX-XXXX
        if v.startswith("050") or v[1] in ("7", "8", "9"):
            return f"{v[:3]}-{v[3:7]}-{v[7:]}"
        if len(v) == 10:
            # Tokyo (03) and Osaka (06) use a 2-digit area code
            if v[1] in ("3", "6"):
                return f"{v[:2]}-{v[2:6]}-{v[6:]}"
            return f"{v[:3]}-{v[3:6]}-{v[6:]}"
        if len(v) == 11:
            return f"{v[:4]}-{v[4:6]}-{v[6:]}"
        return v

    @property
    def international(self) -> str:
        if self.country_code == "JP":
            return f"+81-{self.value[1:]}"
        return self.value

    @property
    def masked(self) -> str:
        parts = self.formatted.split("-")
        if len(parts) >= 3:
            return f"{parts[0]}-****-{parts[-1]}"
        return f"{self.formatted[:3]}****"

    @property
    def is_mobile(self) -> bool:
        return self.country_code == "JP" and self.value.startswith(MOBILE_PREFIXES)

    def equals(self, other: PhoneNumber | None) -> bool:
        if other is None:
            return False
        return self.value == other.value and self.country_code == other.country_code

    def __str__(self) -> str:
        return self.formatted
