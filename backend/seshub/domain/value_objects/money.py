"""Money value object with currency-aware arithmetic and tax helpers."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

VALID_CURRENCIES = ("JPY", "USD", "EUR", "GBP", "CNY")

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CNY": "¥",
}

_CENTS = Decimal("0.01")


def _to_decimal(value: int | float | str | Decimal) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid amount: {value}") from exc


@dataclass(frozen=True)
class Money:
    """An amount of money in a single currency, rounded to 2 decimals."""

    amount: Decimal
    currency: str = "JPY"

    def __post_init__(self) -> None:
        amount = _to_decimal(self.amount)
        if amount < 0:
            raise ValueError("Amount cannot be negative")
        if self.currency not in VALID_CURRENCIES:
            raise ValueError(f"Invalid currency: {self.currency}")
        object.__setattr__(
            self, "amount", amount.quantize(_CENTS, rounding=ROUND_HALF_UP)
        )

    def _check_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Currency mismatch: {self.currency} and {other.currency}"
            )

    def add(self, other: Money) -> Money:
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def subtract(self, other: Money) -> Money:
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def multiply(self, factor: int | float | Decimal) -> Money:
        return Money(self.amount * _to_decimal(factor), self.currency)

    def divide(self, divisor: int | float | Decimal) -> Money:
        divisor_value = _to_decimal(divisor)
        if divisor_value == 0:
            raise ValueError("Cannot divide by zero")
        return Money(self.amount / divisor_value, self.currency)

    def percentage(self, percent: int | float | Decimal) -> Money:
        return Money(self.amount * _to_decimal(percent) / 100, self.currency)

    def with_tax(self, tax_rate: int | float | Decimal = 10) -> Money:
        """Amount including Japanese consumption tax."""
        return Money(self.amount * (1 + _to_decimal(tax_rate) / 100), self.currency)

    def without_tax(self, tax_rate: int | float | Decimal = 10) -> Money:
        """Amount excluding Japanese consumption tax."""
        return Money(self.amount / (1 + _to_decimal(tax_rate) / 100), self.currency)

    def is_greater_than(self, other: Money) -> bool:
        self._check_currency(other)
        return self.amount > other.amount

    def is_less_than(self, other: Money) -> bool:
        self._check_currency(other)
        return self.amount < other.amount

    def equals(self, other: Money | None) -> bool:
        if other is None:
            return False
        return self.amount == other.amount and self.currency == other.currency

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_positive(self) -> bool:
        return self.amount > 0

    def to_dict(self) -> dict[str, Any]:
        return {"amount": float(self.amount), "currency": self.currency}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Money:
        return cls(data["amount"], data.get("currency", "JPY"))

    def __str__(self) -> str:
        if self.currency == "JPY":
            return f"¥{self.amount:,.0f}"
        symbol = CURRENCY_SYMBOLS.get(self.currency, self.currency)
        return f"{symbol}{self.amount:,.2f}"
