"""
Value objects for the SES domain.
"""

from .date_range import DateRange
from .email import Email
from .money import Money
from .offer_status import OfferStatus
from .phone_number import PhoneNumber

__all__ = [
    "DateRange",
    "Email",
    "Money",
    "OfferStatus",
    "PhoneNumber",
]
