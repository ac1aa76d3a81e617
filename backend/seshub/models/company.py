"""Company model: the tenant unit, either an SES vendor or a client."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, IdentityMixin, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from .user import User


class CompanyType(str, Enum):
    """Company type enumeration."""

    SES = "SES"
    CLIENT = "CLIENT"


class Company(Base, IdentityMixin, TimestampMixin, SoftDeleteMixin):
    """Company entity. Every tenant-scoped row points at one."""

    __tablename__ = "companies"

    company_type: Mapped[CompanyType] = mapped_column(
        SQLEnum(CompanyType, name="companytype"),
        default=CompanyType.SES,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    website_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    max_engineers: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    users: Mapped[list[User]] = relationship("User", back_populates="company")

    __table_args__ = (
        Index("idx_company_type_active", "company_type", "is_active"),
    )
