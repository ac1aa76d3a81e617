"""
Offer schemas for client companies and SES companies.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ...models.business_partner import AccessPermissionType
from ...models.offer import OfferEngineerState, OfferState
from .engineer import EngineerResponse


class ProjectDetails(BaseModel):
    """Project the offer is for. Completeness is checked by the offer validator."""

    name: str | None = Field(None, max_length=255)
    period_start: date | None = None
    period_end: date | None = None
    required_skills: list[Any] = Field(default_factory=list)
    description: str | None = None
    location: str | None = Field(None, max_length=255)
    rate_min: Decimal | None = None
    rate_max: Decimal | None = None
    remarks: str | None = None


class OfferCreate(BaseModel):
    engineer_ids: list[UUID] = Field(default_factory=list)
    project_details: ProjectDetails | None = None

    model_config: ClassVar[ConfigDict] = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "engineer_ids": ["0190a5b2-0000-7000-8000-000000000001"],
                    "project_details": {
                        "name": "ECサイト開発",
                        "period_start": "2025-04-01",
                        "period_end": "2025-09-30",
                        "required_skills": ["Python", "FastAPI"],
                        "description": "バックエンドAPIの設計と実装",
                        "rate_min": 600000,
                        "rate_max": 800000,
                    },
                }
            ]
        }
    )


class OfferStatusUpdate(BaseModel):
    status: str = Field(..., description="withdrawn or reminder_sent")


class BulkActionRequest(BaseModel):
    offer_ids: list[UUID] = Field(default_factory=list)
    action: str = Field(..., description="remind or withdraw")


class BulkActionResponse(BaseModel):
    success: int
    failed: int


class OfferEngineerResponse(BaseModel):
    id: UUID
    engineer_id: UUID
    individual_status: OfferEngineerState
    responded_at: datetime | None = None
    response_comment: str | None = None
    engineer: EngineerResponse | None = None

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)


class OfferResponse(BaseModel):
    id: UUID
    offer_number: str
    company_id: UUID
    ses_company_id: UUID
    business_partner_id: UUID
    status: OfferState
    project_name: str
    project_period_start: date
    project_period_end: date
    required_skills: list[Any]
    project_description: str
    location: str | None = None
    rate_min: Decimal | None = None
    rate_max: Decimal | None = None
    remarks: str | None = None
    sent_at: datetime
    opened_at: datetime | None = None
    responded_at: datetime | None = None
    reminder_sent_at: datetime | None = None
    reminder_count: int
    created_by: UUID
    offer_engineers: list[OfferEngineerResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)


class OfferListResponse(BaseModel):
    offers: list[OfferResponse]
    total: int
    page: int
    limit: int


class OfferStatistics(BaseModel):
    total_offers: int
    monthly_offers: int
    weekly_offers: int
    today_offers: int
    acceptance_rate: int
    decline_rate: int
    average_response_time: float


class OfferBoardEngineer(BaseModel):
    engineer: EngineerResponse
    offer_status: OfferState | None = None


class OfferBoardResponse(BaseModel):
    available_engineers: int
    monthly_offers: int
    today_offers: int
    accepted: int
    pending: int
    declined: int
    permission_type: AccessPermissionType
    engineers: list[OfferBoardEngineer]


class EngineerResponseRequest(BaseModel):
    """An engineer's answer to an offer."""

    response: str = Field(..., description="PENDING, ACCEPTED or DECLINED")
    comment: str | None = Field(None, max_length=2000)
