"""Offer status value object with display names and allowed transitions."""

from __future__ import annotations

from enum import Enum

DISPLAY_NAMES = {
    "PENDING": "検討中",
    "ACCEPTED": "承諾",
    "DECLINED": "辞退",
    "WITHDRAWN": "撤回",
    "EXPIRED": "期限切れ",
    "SENT": "送信済み",
}


class OfferStatus(str, Enum):
    """Lifecycle of an engineer's answer to an offer.

    SENT -> PENDING | WITHDRAWN
    PENDING -> ACCEPTED | DECLINED | WITHDRAWN
    ACCEPTED, DECLINED, WITHDRAWN and EXPIRED are final.
    """

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    WITHDRAWN = "WITHDRAWN"
    EXPIRED = "EXPIRED"
    SENT = "SENT"

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self.value]

    @classmethod
    def from_string(cls, value: str) -> OfferStatus:
        try:
            return cls(value.strip().upper())
        except (AttributeError, ValueError) as exc:
            raise ValueError(f"Invalid offer status: {value}") from exc

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return isinstance(value, str) and value.strip().upper() in cls.__members__

    @classmethod
    def all_values(cls) -> list[OfferStatus]:
        return list(cls)

    @property
    def is_active(self) -> bool:
        return self in (OfferStatus.PENDING, OfferStatus.SENT)

    @property
    def is_final(self) -> bool:
        return self in (
            OfferStatus.ACCEPTED,
            OfferStatus.DECLINED,
            OfferStatus.WITHDRAWN,
            OfferStatus.EXPIRED,
        )

    def next_statuses(self) -> list[OfferStatus]:
        return list(_TRANSITIONS.get(self, ()))

    def can_transition_to(self, target: OfferStatus) -> bool:
        return target in _TRANSITIONS.get(self, ())

    def __str__(self) -> str:
        return self.value


_TRANSITIONS: dict[OfferStatus, tuple[OfferStatus, ...]] = {
    OfferStatus.SENT: (OfferStatus.PENDING, OfferStatus.WITHDRAWN),
    OfferStatus.PENDING: (
        OfferStatus.ACCEPTED,
        OfferStatus.DECLINED,
        OfferStatus.WITHDRAWN,
    ),
}
