"""Company repository: the tenant table itself, queried without company scope."""

from __future__ import annotations

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from seshub.models.company import Company, CompanyType

from .base import BaseRepository


class CompanyRepository(BaseRepository[Company]):
    """Repository for company lookup and lifecycle operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Company)

    async def get_by_name(
        self, name: str, company_type: CompanyType | None = None
    ) -> Company | None:
        """Get company by exact name, optionally restricted to a type."""
        stmt = select(self.model).where(
            and_(self.model.name == name, *self._scope())
        )
        if company_type is not None:
            stmt = stmt.where(self.model.company_type == company_type)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_or_create_client(self, name: str, **fields: object) -> Company:
        """Reuse the CLIENT company with this name, or create it."""
        existing = await self.get_by_name(name, CompanyType.CLIENT)
        if existing is not None:
            return existing
        return await self.create(
            name=name, company_type=CompanyType.CLIENT, **fields
        )
