"""Project model with company scoping."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Date, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel


class ProjectStatus(str, Enum):
    """Project status enumeration."""

    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"


class Project(BaseModel):
    """Project entity owned by an SES company."""

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        SQLEnum(ProjectStatus, name="projectstatus"),
        default=ProjectStatus.PLANNING,
        nullable=False,
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    contract_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    monthly_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    required_engineers: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    required_skills: Mapped[list[Any]] = mapped_column(
        JSON, default=list, nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    industry: Mapped[str | None] = mapped_column(String(100), nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_project_company_name"),
    )
