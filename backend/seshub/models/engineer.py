"""Engineer model: the staff an SES company dispatches to clients."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, Index, Integer, Numeric, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel

if TYPE_CHECKING:
    from .skill_sheet import SkillSheet


class EngineerType(str, Enum):
    """Employment relation of the engineer to the SES company."""

    EMPLOYEE = "EMPLOYEE"
    BUSINESS_PARTNER = "BUSINESS_PARTNER"


class EngineerStatus(str, Enum):
    """Engineer availability status."""

    AVAILABLE = "AVAILABLE"
    WORKING = "WORKING"
    WAITING = "WAITING"
    WAITING_SOON = "WAITING_SOON"
    SCHEDULED = "SCHEDULED"
    OTHER = "OTHER"
    RETIRED = "RETIRED"


WAITING_STATUSES = (EngineerStatus.WAITING, EngineerStatus.WAITING_SOON)


class Engineer(BaseModel):
    """Engineer entity owned by an SES company."""

    __tablename__ = "engineers"

    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name_kana: Mapped[str | None] = mapped_column(String(100), nullable=True)
    first_name_kana: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    years_of_experience: Mapped[int | None] = mapped_column(Integer, nullable=True)

    engineer_type: Mapped[EngineerType] = mapped_column(
        SQLEnum(EngineerType, name="engineertype"),
        default=EngineerType.EMPLOYEE,
        nullable=False,
    )
    contract_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    current_status: Mapped[EngineerStatus] = mapped_column(
        SQLEnum(EngineerStatus, name="engineerstatus"),
        default=EngineerStatus.AVAILABLE,
        nullable=False,
    )
    available_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    monthly_unit_price: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    nearest_station: Mapped[str | None] = mapped_column(String(100), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    skill_sheet: Mapped[SkillSheet | None] = relationship(
        "SkillSheet",
        back_populates="engineer",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_engineer_company_status", "company_id", "current_status"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.last_name} {self.first_name}"
