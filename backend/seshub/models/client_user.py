"""Client user model: accounts of a client company behind a business partner."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, GlobalModel

if TYPE_CHECKING:
    from .business_partner import BusinessPartner
    from .rbac import ClientUserRole


class ClientUser(BaseModel):
    """Client user. ``company_id`` is the client company."""

    __tablename__ = "client_users"

    business_partner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("business_partners.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Login lockout tracking
    failed_login_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    account_locked_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    business_partner: Mapped[BusinessPartner] = relationship(
        "BusinessPartner", back_populates="client_users", lazy="selectin"
    )
    user_roles: Mapped[list[ClientUserRole]] = relationship(
        "ClientUserRole",
        back_populates="client_user",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ViewAction(str, Enum):
    """Actions recorded in the client view log."""

    LIST_ENGINEERS = "LIST_ENGINEERS"
    VIEW_ENGINEER_DETAIL = "VIEW_ENGINEER_DETAIL"
    SEARCH_ENGINEERS = "SEARCH_ENGINEERS"
    VIEW_OFFER_BOARD = "VIEW_OFFER_BOARD"


class ClientViewLog(GlobalModel):
    """What a client user looked at, and from where."""

    __tablename__ = "client_view_logs"

    client_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("client_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    engineer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("engineers.id", ondelete="SET NULL"),
        nullable=True,
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
