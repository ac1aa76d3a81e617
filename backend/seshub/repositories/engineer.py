"""
Engineer repository with company isolation.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from seshub.models.engineer import Engineer, EngineerStatus

from .base import TenantRepository

ENGINEER_SEARCH_FIELDS = (
    "last_name",
    "first_name",
    "last_name_kana",
    "first_name_kana",
    "email",
)


class EngineerRepository(TenantRepository[Engineer]):
    """Repository for engineer operations with company isolation."""

    def __init__(self, session: AsyncSession, company_id: UUID) -> None:
        super().__init__(session, Engineer, company_id)

    def search_condition(self, term: str) -> Any:
        """OR condition matching ``term`` in names, kana and email."""
        pattern = f"%{term.strip()}%"
        return or_(
            *(getattr(Engineer, field).ilike(pattern) for field in ENGINEER_SEARCH_FIELDS)
        )

    async def list_engineers(
        self,
        skip: int = 0,
        limit: int = 20,
        status: EngineerStatus | None = None,
        search: str | None = None,
        include_inactive: bool = False,
    ) -> tuple[list[Engineer], int]:
        """Page of engineers plus the total matching count."""
        conditions = list(self._scope())
        if not include_inactive:
            conditions.append(Engineer.is_active.is_(True))
        if status is not None:
            conditions.append(Engineer.current_status == status)
        if search and search.strip():
            conditions.append(self.search_condition(search))

        total_stmt = select(func.count(Engineer.id)).where(and_(*conditions))
        total = int((await self.session.execute(total_stmt)).scalar() or 0)

        stmt = (
            select(Engineer)
            .where(and_(*conditions))
            .order_by(Engineer.created_at.desc(), Engineer.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_many(self, engineer_ids: list[UUID]) -> list[Engineer]:
        """Engineers of this company among ``engineer_ids``."""
        if not engineer_ids:
            return []
        stmt = select(Engineer).where(
            and_(Engineer.id.in_(engineer_ids), *self._scope())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_status(
        self, engineer_id: UUID, status: EngineerStatus
    ) -> Engineer | None:
        """Update engineer availability status."""
        return await self.update(engineer_id, current_status=status)

    async def count_by_status(self) -> dict[str, int]:
        """Engineer counts keyed by status value."""
        stmt = (
            select(Engineer.current_status, func.count(Engineer.id))
            .where(and_(*self._scope()))
            .group_by(Engineer.current_status)
        )
        result = await self.session.execute(stmt)
        return {status.value: count for status, count in result.all()}
