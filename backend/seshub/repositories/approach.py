"""
Approach repository: sent history for the sender, received list for the target.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from seshub.models.approach import Approach, ApproachStatus, ApproachType

from .base import TenantRepository


class ApproachRepository(TenantRepository[Approach]):
    """Repository for approaches sent by one company."""

    def __init__(self, session: AsyncSession, company_id: UUID) -> None:
        super().__init__(session, Approach, company_id)

    async def list_sent(
        self,
        skip: int = 0,
        limit: int = 20,
        status: ApproachStatus | None = None,
        approach_type: ApproachType | None = None,
        sent_from: datetime | None = None,
        sent_to: datetime | None = None,
    ) -> tuple[list[Approach], int]:
        """Page of this company's approaches, newest send first, plus the total."""
        conditions = list(self._scope())
        if status is not None:
            conditions.append(Approach.status == status)
        if approach_type is not None:
            conditions.append(Approach.approach_type == approach_type)
        if sent_from is not None:
            conditions.append(Approach.sent_at >= sent_from)
        if sent_to is not None:
            conditions.append(Approach.sent_at <= sent_to)
        return await self._page(conditions, skip, limit)

    async def list_received(
        self, skip: int = 0, limit: int = 20
    ) -> tuple[list[Approach], int]:
        """Sent approaches addressed to this company by other companies."""
        conditions = [
            Approach.to_company_id == self.company_id,
            Approach.is_deleted.is_(False),
            Approach.status != ApproachStatus.DRAFT,
        ]
        return await self._page(conditions, skip, limit)

    async def get_visible(self, approach_id: UUID) -> Approach | None:
        """Approach sent by, or sent to, this company."""
        stmt = select(Approach).where(
            and_(
                Approach.id == approach_id,
                Approach.is_deleted.is_(False),
                (Approach.company_id == self.company_id)
                | (
                    (Approach.to_company_id == self.company_id)
                    & (Approach.status != ApproachStatus.DRAFT)
                ),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_by_status(
        self, since: datetime | None = None
    ) -> dict[ApproachStatus, int]:
        """Sent approaches per status, optionally only those sent since ``since``."""
        conditions = [*self._scope(), Approach.status != ApproachStatus.DRAFT]
        if since is not None:
            conditions.append(Approach.sent_at >= since)
        stmt = (
            select(Approach.status, func.count(Approach.id))
            .where(and_(*conditions))
            .group_by(Approach.status)
        )
        result = await self.session.execute(stmt)
        return {status: int(count) for status, count in result.all()}

    async def _page(
        self, conditions: list, skip: int, limit: int
    ) -> tuple[list[Approach], int]:
        total_stmt = select(func.count(Approach.id)).where(and_(*conditions))
        total = int((await self.session.execute(total_stmt)).scalar() or 0)

        stmt = (
            select(Approach)
            .where(and_(*conditions))
            .order_by(
                Approach.sent_at.desc().nulls_last(),
                Approach.created_at.desc(),
                Approach.id,
            )
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total
