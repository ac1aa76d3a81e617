"""Approach model: sales outreach from an SES company to a company or freelancer."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel


class ApproachType(str, Enum):
    """Who an approach is addressed to."""

    COMPANY = "COMPANY"
    FREELANCE = "FREELANCE"


class ApproachStatus(str, Enum):
    """Approach status enumeration."""

    DRAFT = "DRAFT"
    SENT = "SENT"
    OPENED = "OPENED"
    REPLIED = "REPLIED"
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class Approach(BaseModel):
    """Approach entity. ``company_id`` is the sending SES company."""

    __tablename__ = "approaches"

    approach_type: Mapped[ApproachType] = mapped_column(
        SQLEnum(ApproachType, name="approachtype"), nullable=False
    )
    to_company_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("companies.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    target_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    recipient_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    engineer_ids: Mapped[list[Any]] = mapped_column(JSON, default=list, nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    message_content: Mapped[str] = mapped_column(Text, nullable=False)
    project_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ApproachStatus] = mapped_column(
        SQLEnum(ApproachStatus, name="approachstatus"),
        default=ApproachStatus.DRAFT,
        nullable=False,
    )
    sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    sent_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )

    __table_args__ = (
        Index("idx_approach_company_sent_at", "company_id", "sent_at"),
    )
