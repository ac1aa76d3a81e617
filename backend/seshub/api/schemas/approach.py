"""
Approach schemas.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ...models.approach import ApproachStatus, ApproachType


class ApproachCreate(BaseModel):
    approach_type: ApproachType
    to_company_id: UUID | None = None
    target_name: str | None = Field(None, max_length=255)
    recipient_email: EmailStr | None = None
    engineer_ids: list[UUID] = Field(default_factory=list)
    subject: str = Field(..., min_length=1, max_length=255)
    message_content: str = Field(..., min_length=1)
    project_details: str | None = None

    model_config: ClassVar[ConfigDict] = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "approach_type": "COMPANY",
                    "to_company_id": "0191d8a0-0000-7000-8000-000000000000",
                    "subject": "Javaエンジニアのご紹介",
                    "message_content": "弊社エンジニアをご紹介いたします。",
                }
            ]
        }
    )


class ApproachStatusUpdate(BaseModel):
    status: ApproachStatus


class ApproachResponse(BaseModel):
    id: UUID
    company_id: UUID
    approach_type: ApproachType
    to_company_id: UUID | None = None
    target_name: str | None = None
    recipient_email: str | None = None
    engineer_ids: list[UUID]
    subject: str
    message_content: str
    project_details: str | None = None
    status: ApproachStatus
    sent_at: datetime | None = None
    created_by: UUID
    sent_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)


class ApproachListResponse(BaseModel):
    approaches: list[ApproachResponse]
    total: int
    page: int
    limit: int


class ApproachStatistics(BaseModel):
    total: int
    last_30_days: int
    opened: int
    replied: int
    open_rate: float
    reply_rate: float
