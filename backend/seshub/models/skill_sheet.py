"""Skill sheet model: one structured résumé per engineer."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel

if TYPE_CHECKING:
    from .engineer import Engineer

SKILL_LIST_FIELDS = (
    "programming_languages",
    "frameworks",
    "databases",
    "tools",
    "cloud_services",
)


class SkillSheet(BaseModel):
    """Skill sheet entity."""

    __tablename__ = "skill_sheets"

    engineer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("engineers.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    self_introduction: Mapped[str | None] = mapped_column(Text, nullable=True)
    specialization: Mapped[str | None] = mapped_column(String(255), nullable=True)
    qualification: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Lists of names or {"name": ..., "years": ...} objects
    programming_languages: Mapped[list[Any]] = mapped_column(
        JSON, default=list, nullable=False
    )
    frameworks: Mapped[list[Any]] = mapped_column(JSON, default=list, nullable=False)
    databases: Mapped[list[Any]] = mapped_column(JSON, default=list, nullable=False)
    tools: Mapped[list[Any]] = mapped_column(JSON, default=list, nullable=False)
    cloud_services: Mapped[list[Any]] = mapped_column(
        JSON, default=list, nullable=False
    )
    languages: Mapped[list[Any]] = mapped_column(JSON, default=list, nullable=False)

    career_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    special_skills: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    engineer: Mapped[Engineer] = relationship("Engineer", back_populates="skill_sheet")

    def skill_names(self) -> set[str]:
        """Lower-cased names across all technical skill lists."""
        names: set[str] = set()
        for field in SKILL_LIST_FIELDS:
            for item in getattr(self, field) or []:
                name = item.get("name") if isinstance(item, dict) else item
                if isinstance(name, str) and name.strip():
                    names.add(name.strip().lower())
        return names
