"""
Engineer and skill sheet schemas.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...domain.value_objects import Email, PhoneNumber
from ...models.engineer import EngineerStatus, EngineerType


def _normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    return Email(value).value


def _normalize_phone(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return PhoneNumber(value).value


class EngineerBase(BaseModel):
    last_name: str = Field(..., min_length=1, max_length=100)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name_kana: str | None = Field(None, max_length=100)
    first_name_kana: str | None = Field(None, max_length=100)
    email: str = Field(..., max_length=255)
    phone: str | None = None
    gender: str | None = Field(None, max_length=20)
    birth_date: date | None = None
    years_of_experience: int | None = Field(None, ge=0, le=60)
    engineer_type: EngineerType = EngineerType.EMPLOYEE
    contract_type: str | None = Field(None, max_length=50)
    current_status: EngineerStatus = EngineerStatus.AVAILABLE
    available_date: date | None = None
    monthly_unit_price: Decimal | None = Field(None, ge=0)
    nearest_station: str | None = Field(None, max_length=100)
    remarks: str | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return _normalize_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        return _normalize_phone(v)


class EngineerCreate(EngineerBase):
    model_config: ClassVar[ConfigDict] = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "last_name": "山田",
                    "first_name": "太郎",
                    "last_name_kana": "ヤマダ",
                    "first_name_kana": "タロウ",
                    "email": "yamada@example.com",
                    "phone": "090-1234-5678",
                    "years_of_experience": 5,
                    "current_status": "AVAILABLE",
                }
            ]
        }
    )


class EngineerUpdate(BaseModel):
    last_name: str | None = Field(None, min_length=1, max_length=100)
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name_kana: str | None = Field(None, max_length=100)
    first_name_kana: str | None = Field(None, max_length=100)
    email: str | None = Field(None, max_length=255)
    phone: str | None = None
    gender: str | None = Field(None, max_length=20)
    birth_date: date | None = None
    years_of_experience: int | None = Field(None, ge=0, le=60)
    engineer_type: EngineerType | None = None
    contract_type: str | None = Field(None, max_length=50)
    current_status: EngineerStatus | None = None
    available_date: date | None = None
    is_active: bool | None = None
    monthly_unit_price: Decimal | None = Field(None, ge=0)
    nearest_station: str | None = Field(None, max_length=100)
    remarks: str | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return _normalize_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        return _normalize_phone(v)


class EngineerStatusUpdate(BaseModel):
    current_status: EngineerStatus
    available_date: date | None = None


class SkillSheetSummary(BaseModel):
    specialization: str | None = None
    programming_languages: list[Any] = Field(default_factory=list)
    frameworks: list[Any] = Field(default_factory=list)
    databases: list[Any] = Field(default_factory=list)
    tools: list[Any] = Field(default_factory=list)
    cloud_services: list[Any] = Field(default_factory=list)
    is_completed: bool = False

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)


class EngineerResponse(BaseModel):
    id: UUID
    company_id: UUID
    last_name: str
    first_name: str
    last_name_kana: str | None = None
    first_name_kana: str | None = None
    full_name: str
    email: str
    phone: str | None = None
    gender: str | None = None
    birth_date: date | None = None
    years_of_experience: int | None = None
    engineer_type: EngineerType
    contract_type: str | None = None
    current_status: EngineerStatus
    available_date: date | None = None
    is_active: bool
    monthly_unit_price: Decimal | None = None
    nearest_station: str | None = None
    remarks: str | None = None
    skill_sheet: SkillSheetSummary | None = None
    created_at: datetime
    updated_at: datetime

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class EngineerListResponse(BaseModel):
    engineers: list[EngineerResponse]
    pagination: Pagination


class SkillSheetUpsert(BaseModel):
    self_introduction: str | None = None
    specialization: str | None = Field(None, max_length=255)
    qualification: str | None = None
    programming_languages: list[Any] = Field(default_factory=list)
    frameworks: list[Any] = Field(default_factory=list)
    databases: list[Any] = Field(default_factory=list)
    tools: list[Any] = Field(default_factory=list)
    cloud_services: list[Any] = Field(default_factory=list)
    languages: list[Any] = Field(default_factory=list)
    career_summary: str | None = None
    special_skills: str | None = None
    is_completed: bool = False


class SkillSheetResponse(SkillSheetUpsert):
    id: UUID
    engineer_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)
