"""
Skill sheet repository with company isolation.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from seshub.models.skill_sheet import SkillSheet

from .base import TenantRepository


class SkillSheetRepository(TenantRepository[SkillSheet]):
    """Repository for skill sheet operations with company isolation."""

    def __init__(self, session: AsyncSession, company_id: UUID) -> None:
        super().__init__(session, SkillSheet, company_id)

    async def get_by_engineer(self, engineer_id: UUID) -> SkillSheet | None:
        """Get the skill sheet of an engineer."""
        return await self.get_by_field("engineer_id", engineer_id)

    async def upsert(self, engineer_id: UUID, **fields: Any) -> SkillSheet:
        """Create the engineer's skill sheet or update the existing one."""
        existing = await self.get_by_engineer(engineer_id)
        if existing is None:
            return await self.create(engineer_id=engineer_id, **fields)
        updated = await self.update(existing.id, **fields)
        return updated if updated is not None else existing
