"""
Project management API schemas.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ...domain.value_objects import DateRange
from ...models.project import ProjectStatus


def _check_period(start: date | None, end: date | None) -> None:
    if start is not None and end is not None:
        DateRange(start, end)


class ProjectBase(BaseModel):
    """Base project schema with common fields"""

    name: str = Field(..., min_length=1, max_length=255, description="Project name")
    client_company: str | None = Field(None, max_length=255)
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: date | None = None
    end_date: date | None = None
    contract_type: str | None = Field(None, max_length=50)
    monthly_rate: Decimal | None = Field(None, ge=0)
    required_engineers: int = Field(default=1, ge=1)
    required_skills: list[Any] = Field(default_factory=list)
    description: str | None = None
    industry: str | None = Field(None, max_length=100)


class ProjectCreate(ProjectBase):
    """Project creation schema"""

    @model_validator(mode="after")
    def validate_period(self) -> "ProjectCreate":
        _check_period(self.start_date, self.end_date)
        return self

    model_config: ClassVar[ConfigDict] = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "name": "基幹システム刷新",
                    "client_company": "株式会社サンプル",
                    "start_date": "2025-04-01",
                    "end_date": "2026-03-31",
                    "required_skills": ["Java", "Spring"],
                }
            ]
        }
    )


class ProjectUpdate(BaseModel):
    """Project update schema"""

    name: str | None = Field(None, min_length=1, max_length=255)
    client_company: str | None = Field(None, max_length=255)
    status: ProjectStatus | None = None
    start_date: date | None = None
    end_date: date | None = None
    contract_type: str | None = Field(None, max_length=50)
    monthly_rate: Decimal | None = Field(None, ge=0)
    required_engineers: int | None = Field(None, ge=1)
    required_skills: list[Any] | None = None
    description: str | None = None
    industry: str | None = Field(None, max_length=100)

    @model_validator(mode="after")
    def validate_period(self) -> "ProjectUpdate":
        _check_period(self.start_date, self.end_date)
        return self


class ProjectResponse(ProjectBase):
    """Project response schema"""

    id: UUID
    company_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config: ClassVar[ConfigDict] = ConfigDict(from_attributes=True)


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    total: int
    page: int
    limit: int
