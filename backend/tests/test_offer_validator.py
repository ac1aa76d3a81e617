"""
Tests for offer payload validation.
"""

from datetime import date

import pytest

from seshub.core.exceptions import ValidationError
from seshub.services.offer_validator import OfferValidator, parse_period_dates


def make_payload(**overrides):
    details = {
        "name": "ECサイトリニューアル",
        "period_start": "2026-11-01",
        "period_end": "2027-03-31",
        "required_skills": ["Python", "AWS"],
        "description": "バックエンド開発",
        "rate_min": 600000,
        "rate_max": 800000,
    }
    details.update(overrides.pop("project_details", {}))
    payload = {"engineer_ids": ["e1"], "project_details": details}
    payload.update(overrides)
    return payload


@pytest.fixture
def validator() -> OfferValidator:
    return OfferValidator()


def errors_of(exc_info) -> list[str]:
    return exc_info.value.details["errors"]


class TestValidateCreate:
    def test_valid_payload(self, validator) -> None:
        validator.validate_create(make_payload())

    def test_missing_engineers_and_details(self, validator) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_create({"engineer_ids": []})

        assert exc_info.value.message == "Invalid offer data"
        assert errors_of(exc_info) == [
            "engineer_ids is required",
            "project_details is required",
        ]

    def test_collects_every_problem(self, validator) -> None:
        payload = make_payload(
            project_details={
                "name": " ",
                "period_start": None,
                "required_skills": [],
                "description": "",
            }
        )
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_create(payload)

        assert errors_of(exc_info) == [
            "Project name is required",
            "Start date is required",
            "At least one required skill must be specified",
            "Project description is required",
        ]

    def test_reversed_period(self, validator) -> None:
        payload = make_payload(
            project_details={"period_start": "2027-04-01", "period_end": "2027-03-31"}
        )
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_create(payload)
        assert errors_of(exc_info) == ["Start date must be on or before the end date"]

    def test_single_day_period_is_valid(self, validator) -> None:
        validator.validate_create(
            make_payload(
                project_details={"period_start": "2026-12-01", "period_end": "2026-12-01"}
            )
        )

    @pytest.mark.parametrize(
        ("rates", "expected"),
        [
            ({"rate_min": -1}, ["Rates must be zero or greater"]),
            (
                {"rate_min": 900000, "rate_max": 500000},
                ["Minimum rate must not exceed the maximum rate"],
            ),
        ],
    )
    def test_rates(self, validator, rates, expected) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_create(make_payload(project_details=rates))
        assert errors_of(exc_info) == expected

    def test_rates_are_optional(self, validator) -> None:
        validator.validate_create(
            make_payload(project_details={"rate_min": None, "rate_max": None})
        )


class TestOtherChecks:
    def test_status_update(self, validator) -> None:
        validator.validate_status_update("withdrawn")
        validator.validate_status_update("reminder_sent")
        with pytest.raises(ValidationError, match="Invalid status"):
            validator.validate_status_update("accepted")

    def test_bulk_action(self, validator) -> None:
        validator.validate_bulk_action(["o1"], "remind")
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_bulk_action([], "delete")
        assert errors_of(exc_info) == [
            "At least one offer id is required",
            "Invalid action",
        ]

    def test_search_params(self, validator) -> None:
        validator.validate_search_params(page=1, limit=100, status="SENT", period="last_month")
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_search_params(
                page=0, limit=101, status="sent", period="forever"
            )
        assert errors_of(exc_info) == [
            "page must be 1 or greater",
            "limit must be between 1 and 100",
            "Invalid status filter",
            "Invalid period filter",
        ]


def test_parse_period_dates() -> None:
    assert parse_period_dates(
        {"period_start": "2026-11-01", "period_end": "2027-03-31T00:00:00"}
    ) == (date(2026, 11, 1), date(2027, 3, 31))
