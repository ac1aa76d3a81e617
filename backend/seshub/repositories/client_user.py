"""
Client user repositories.

Client users belong to a client company but are managed through the business
partner of an SES company, so lookups here are keyed by partner or email.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from seshub.models.client_user import ClientUser, ClientViewLog

from .base import BaseRepository


class ClientUserRepository(BaseRepository[ClientUser]):
    """Repository for client user accounts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ClientUser)

    async def get_by_email(self, email: str) -> ClientUser | None:
        return await self.get_by_field("email", email.strip().lower())

    async def list_by_partner(self, business_partner_id: UUID) -> list[ClientUser]:
        stmt = (
            select(ClientUser)
            .where(
                and_(
                    ClientUser.business_partner_id == business_partner_id,
                    *self._scope(),
                )
            )
            .order_by(ClientUser.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_for_partner(
        self, business_partner_id: UUID, client_user_id: UUID
    ) -> ClientUser | None:
        user = await self.get_by_id(client_user_id)
        if user is None or user.business_partner_id != business_partner_id:
            return None
        return user


class ClientViewLogRepository(BaseRepository[ClientViewLog]):
    """Append-only log of client activity."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ClientViewLog)

    async def list_for_user(
        self, client_user_id: UUID, limit: int = 50
    ) -> list[ClientViewLog]:
        stmt = (
            select(ClientViewLog)
            .where(ClientViewLog.client_user_id == client_user_id)
            .order_by(ClientViewLog.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
