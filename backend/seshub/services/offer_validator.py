"""Input validation for client offer operations.

Each check collects every problem first and raises a single
``ValidationError`` whose ``details["errors"]`` lists them.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from ..core.exceptions import ValidationError
from ..domain.value_objects import DateRange
from ..models.offer import OfferState

STATUS_UPDATES = ("withdrawn", "reminder_sent")
BULK_ACTIONS = ("remind", "withdraw")
HISTORY_PERIODS = (
    "last_week",
    "last_month",
    "last_3_months",
    "last_6_months",
    "last_year",
)
MAX_SEARCH_LIMIT = 100


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _raise_if(errors: list[str], message: str) -> None:
    if errors:
        raise ValidationError(message, details={"errors": errors})


class OfferValidator:
    """Stateless validation of offer payloads."""

    def validate_create(self, data: Mapping[str, Any]) -> None:
        errors: list[str] = []

        if not data.get("engineer_ids"):
            errors.append("engineer_ids is required")

        details = data.get("project_details")
        if not details:
            errors.append("project_details is required")
            _raise_if(errors, "Invalid offer data")
            return

        if _blank(details.get("name")):
            errors.append("Project name is required")

        start = details.get("period_start")
        end = details.get("period_end")
        if _blank(start):
            errors.append("Start date is required")
        if _blank(end):
            errors.append("End date is required")
        if not _blank(start) and not _blank(end):
            try:
                DateRange(start, end)
            except ValueError:
                errors.append("Start date must be on or before the end date")

        if not details.get("required_skills"):
            errors.append("At least one required skill must be specified")

        if _blank(details.get("description")):
            errors.append("Project description is required")

        rate_min = _to_decimal(details.get("rate_min"))
        rate_max = _to_decimal(details.get("rate_max"))
        if (rate_min is not None and rate_min < 0) or (
            rate_max is not None and rate_max < 0
        ):
            errors.append("Rates must be zero or greater")
        if rate_min is not None and rate_max is not None and rate_min > rate_max:
            errors.append("Minimum rate must not exceed the maximum rate")

        _raise_if(errors, "Invalid offer data")

    def validate_status_update(self, status: str) -> None:
        if status not in STATUS_UPDATES:
            raise ValidationError(
                "Invalid status",
                field="status",
                details={"errors": [f"status must be one of {list(STATUS_UPDATES)}"]},
            )

    def validate_bulk_action(self, offer_ids: list[Any] | None, action: str | None) -> None:
        errors: list[str] = []
        if not offer_ids:
            errors.append("At least one offer id is required")
        if action not in BULK_ACTIONS:
            errors.append("Invalid action")
        _raise_if(errors, "Invalid bulk action")

    def validate_search_params(
        self,
        page: int | None = None,
        limit: int | None = None,
        status: str | None = None,
        period: str | None = None,
    ) -> None:
        errors: list[str] = []
        if page is not None and page < 1:
            errors.append("page must be 1 or greater")
        if limit is not None and not 1 <= limit <= MAX_SEARCH_LIMIT:
            errors.append(f"limit must be between 1 and {MAX_SEARCH_LIMIT}")
        if status and status not in OfferState.__members__:
            errors.append("Invalid status filter")
        if period and period not in HISTORY_PERIODS:
            errors.append("Invalid period filter")
        _raise_if(errors, "Invalid search parameters")


def parse_period_dates(details: Mapping[str, Any]) -> tuple[date, date]:
    """Validated project period as dates."""
    period = DateRange(details["period_start"], details["period_end"])
    return period.start, period.end


offer_validator = OfferValidator()
