"""Offer models: engineer proposals issued by a client company."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, GlobalModel

if TYPE_CHECKING:
    from .engineer import Engineer


class OfferState(str, Enum):
    """Stored state of an offer row."""

    SENT = "SENT"
    OPENED = "OPENED"
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    WITHDRAWN = "WITHDRAWN"


class OfferEngineerState(str, Enum):
    """Stored answer of a single engineer on an offer."""

    SENT = "SENT"
    OPENED = "OPENED"
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    WITHDRAWN = "WITHDRAWN"


class Offer(BaseModel):
    """Offer entity. ``company_id`` is the issuing client company."""

    __tablename__ = "offers"

    offer_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    ses_company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    business_partner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("business_partners.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[OfferState] = mapped_column(
        SQLEnum(OfferState, name="offerstate"),
        default=OfferState.SENT,
        nullable=False,
    )

    project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_period_start: Mapped[date] = mapped_column(Date, nullable=False)
    project_period_end: Mapped[date] = mapped_column(Date, nullable=False)
    required_skills: Mapped[list[Any]] = mapped_column(
        JSON, default=list, nullable=False
    )
    project_description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    rate_min: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    rate_max: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    opened_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reminder_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reminder_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    offer_engineers: Mapped[list[OfferEngineer]] = relationship(
        "OfferEngineer",
        back_populates="offer",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_offer_company_sent_at", "company_id", "sent_at"),
    )


class OfferEngineer(GlobalModel):
    """Engineer nominated on an offer, with their individual answer."""

    __tablename__ = "offer_engineers"

    offer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("offers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    engineer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("engineers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    individual_status: Mapped[OfferEngineerState] = mapped_column(
        SQLEnum(OfferEngineerState, name="offerengineerstate"),
        default=OfferEngineerState.SENT,
        nullable=False,
    )
    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    response_comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    offer: Mapped[Offer] = relationship("Offer", back_populates="offer_engineers")
    engineer: Mapped[Engineer] = relationship("Engineer", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("offer_id", "engineer_id", name="uq_offer_engineer"),
    )
