"""Business partner models: SES to client relationships and engineer visibility."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, GlobalModel

if TYPE_CHECKING:
    from .client_user import ClientUser
    from .company import Company
    from .engineer import Engineer


class AccessPermissionType(str, Enum):
    """How much of the SES company's roster a partner may see."""

    FULL_ACCESS = "FULL_ACCESS"
    WAITING_ONLY = "WAITING_ONLY"
    SELECTED_ONLY = "SELECTED_ONLY"


class BusinessPartner(BaseModel):
    """Link between an SES company (``company_id``) and a client company."""

    __tablename__ = "business_partners"

    client_company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    access_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    url_token: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )

    ses_company: Mapped[Company] = relationship(
        "Company", foreign_keys="BusinessPartner.company_id", lazy="selectin"
    )
    client_company: Mapped[Company] = relationship(
        "Company", foreign_keys=[client_company_id], lazy="selectin"
    )
    client_users: Mapped[list[ClientUser]] = relationship(
        "ClientUser", back_populates="business_partner"
    )

    __table_args__ = (
        UniqueConstraint(
            "company_id", "client_company_id", name="uq_business_partner_pair"
        ),
    )


class ClientAccessPermission(GlobalModel):
    """Visibility rule for one partner, optionally naming a single engineer."""

    __tablename__ = "client_access_permissions"

    business_partner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("business_partners.id", ondelete="CASCADE"),
        nullable=False,
    )
    engineer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("engineers.id", ondelete="CASCADE"),
        nullable=True,
    )
    permission_type: Mapped[AccessPermissionType] = mapped_column(
        SQLEnum(AccessPermissionType, name="accesspermissiontype"),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )

    __table_args__ = (
        Index("idx_access_permission_partner_active", "business_partner_id", "is_active"),
    )


class EngineerNgList(GlobalModel):
    """Engineer hidden from a partner regardless of access permissions."""

    __tablename__ = "engineer_ng_lists"

    business_partner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("business_partners.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    engineer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("engineers.id", ondelete="CASCADE"),
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )

    engineer: Mapped[Engineer] = relationship("Engineer", lazy="selectin")

    __table_args__ = (
        UniqueConstraint(
            "business_partner_id", "engineer_id", name="uq_engineer_ng_list_pair"
        ),
    )
