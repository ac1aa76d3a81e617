"""
Offer repository scoped to the issuing client company.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from seshub.models.engineer import Engineer
from seshub.models.offer import Offer, OfferEngineer, OfferState

from .base import TenantRepository

ENGINEER_GRAPH = selectinload(OfferEngineer.engineer).selectinload(Engineer.skill_sheet)
OFFER_GRAPH = selectinload(Offer.offer_engineers).options(ENGINEER_GRAPH)


async def load_offer(session: AsyncSession, offer_id: UUID) -> Offer:
    """Re-read an offer with its engineers, overwriting stale identity-map state."""
    stmt = (
        select(Offer)
        .options(OFFER_GRAPH)
        .where(Offer.id == offer_id)
        .execution_options(populate_existing=True)
    )
    return (await session.execute(stmt)).scalar_one()


class OfferRepository(TenantRepository[Offer]):
    """Repository for offers of one client company."""

    def __init__(self, session: AsyncSession, company_id: UUID) -> None:
        super().__init__(session, Offer, company_id)

    async def next_offer_number(self, year: int) -> str:
        """Next ``OFF-{year}-{NNN}`` number, sequenced across all companies."""
        prefix = f"OFF-{year}-"
        stmt = (
            select(Offer.offer_number)
            .where(Offer.offer_number.startswith(prefix))
            .order_by(func.length(Offer.offer_number).desc(), Offer.offer_number.desc())
            .limit(1)
        )
        latest = (await self.session.execute(stmt)).scalar_one_or_none()
        if latest is None:
            return f"{prefix}001"
        return f"{prefix}{int(latest.rsplit('-', 1)[1]) + 1:03d}"

    async def add_engineers(
        self, offer: Offer, engineer_ids: list[UUID]
    ) -> list[OfferEngineer]:
        rows = [
            OfferEngineer(offer_id=offer.id, engineer_id=engineer_id)
            for engineer_id in engineer_ids
        ]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    async def find_offers(
        self,
        statuses: list[OfferState] | None = None,
        sent_from: datetime | None = None,
        sent_to: datetime | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Offer], int]:
        """Offers newest first, with the total matching count."""
        conditions = list(self._scope())
        if statuses:
            conditions.append(Offer.status.in_(statuses))
        if sent_from is not None:
            conditions.append(Offer.sent_at >= sent_from)
        if sent_to is not None:
            conditions.append(Offer.sent_at <= sent_to)
        if search and search.strip():
            term = f"%{search.strip()}%"
            conditions.append(
                or_(Offer.project_name.ilike(term), Offer.offer_number.ilike(term))
            )

        total_stmt = select(func.count(Offer.id)).where(and_(*conditions))
        total = int((await self.session.execute(total_stmt)).scalar() or 0)

        stmt = (
            select(Offer)
            .where(and_(*conditions))
            .order_by(Offer.sent_at.desc(), Offer.offer_number.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_many(self, offer_ids: list[UUID]) -> list[Offer]:
        if not offer_ids:
            return []
        stmt = select(Offer).where(and_(Offer.id.in_(offer_ids), *self._scope()))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_sent_between(self, start: datetime, end: datetime) -> int:
        stmt = select(func.count(Offer.id)).where(
            and_(*self._scope(), Offer.sent_at >= start, Offer.sent_at <= end)
        )
        return int((await self.session.execute(stmt)).scalar() or 0)

    async def count_by_status(self) -> dict[OfferState, int]:
        stmt = (
            select(Offer.status, func.count(Offer.id))
            .where(and_(*self._scope()))
            .group_by(Offer.status)
        )
        result = await self.session.execute(stmt)
        counts = {state: 0 for state in OfferState}
        for state, count in result.all():
            counts[state] = count
        return counts

    async def response_intervals(self) -> list[tuple[datetime, datetime]]:
        """``(sent_at, responded_at)`` of every answered offer."""
        stmt = select(Offer.sent_at, Offer.responded_at).where(
            and_(*self._scope(), Offer.responded_at.is_not(None))
        )
        result = await self.session.execute(stmt)
        return [(sent, responded) for sent, responded in result.all()]

    async def latest_status_by_engineer(
        self, engineer_ids: list[UUID]
    ) -> dict[UUID, OfferState]:
        """Status of the most recent offer naming each engineer."""
        if not engineer_ids:
            return {}
        stmt = (
            select(OfferEngineer.engineer_id, OfferEngineer.individual_status)
            .join(Offer, Offer.id == OfferEngineer.offer_id)
            .where(and_(*self._scope(), OfferEngineer.engineer_id.in_(engineer_ids)))
            .order_by(Offer.sent_at.desc())
        )
        result = await self.session.execute(stmt)
        latest: dict[UUID, OfferState] = {}
        for engineer_id, state in result.all():
            latest.setdefault(engineer_id, OfferState(state.value))
        return latest


class ReceivedOfferRepository:
    """Offers naming engineers of one SES company, regardless of issuer."""

    def __init__(self, session: AsyncSession, ses_company_id: UUID) -> None:
        self.session = session
        self.ses_company_id = ses_company_id

    async def list_received(
        self, skip: int = 0, limit: int = 20, status: OfferState | None = None
    ) -> tuple[list[Offer], int]:
        conditions = [
            Offer.ses_company_id == self.ses_company_id,
            Offer.is_deleted.is_(False),
        ]
        if status is not None:
            conditions.append(Offer.status == status)

        total_stmt = select(func.count(Offer.id)).where(and_(*conditions))
        total = int((await self.session.execute(total_stmt)).scalar() or 0)
        stmt = (
            select(Offer)
            .where(and_(*conditions))
            .order_by(Offer.sent_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_received(self, offer_id: UUID) -> Offer | None:
        stmt = select(Offer).options(OFFER_GRAPH).where(
            and_(
                Offer.id == offer_id,
                Offer.ses_company_id == self.ses_company_id,
                Offer.is_deleted.is_(False),
            )
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def get_offer_engineer(
        self, offer_id: UUID, engineer_id: UUID
    ) -> OfferEngineer | None:
        stmt = (
            select(OfferEngineer)
            .options(ENGINEER_GRAPH)
            .where(
                and_(
                    OfferEngineer.offer_id == offer_id,
                    OfferEngineer.engineer_id == engineer_id,
                )
            )
            .execution_options(populate_existing=True)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()
