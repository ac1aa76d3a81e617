"""
Business partner repositories: partners, access permissions and NG lists.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from seshub.core.logger import get_logger
from seshub.models.business_partner import (
    AccessPermissionType,
    BusinessPartner,
    ClientAccessPermission,
    EngineerNgList,
)
from seshub.models.company import Company

from .base import BaseRepository, TenantRepository

logger = get_logger()


class BusinessPartnerRepository(TenantRepository[BusinessPartner]):
    """Partners of one SES company."""

    def __init__(self, session: AsyncSession, company_id: UUID) -> None:
        super().__init__(session, BusinessPartner, company_id)

    async def get_by_client_company(
        self, client_company_id: UUID
    ) -> BusinessPartner | None:
        return await self.get_by_field("client_company_id", client_company_id)

    async def list_partners(
        self,
        skip: int = 0,
        limit: int = 20,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[BusinessPartner], int]:
        """Page of partners plus the total, searchable by client company name."""
        conditions = list(self._scope())
        if is_active is not None:
            conditions.append(BusinessPartner.is_active.is_(is_active))

        base = select(BusinessPartner).join(
            Company, Company.id == BusinessPartner.client_company_id
        )
        if search and search.strip():
            conditions.append(Company.name.ilike(f"%{search.strip()}%"))

        total_stmt = (
            select(func.count(BusinessPartner.id))
            .select_from(BusinessPartner)
            .join(Company, Company.id == BusinessPartner.client_company_id)
            .where(and_(*conditions))
        )
        total = int((await self.session.execute(total_stmt)).scalar() or 0)

        stmt = (
            base.where(and_(*conditions))
            .order_by(BusinessPartner.created_at.desc(), BusinessPartner.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total


class AccessPermissionRepository(BaseRepository[ClientAccessPermission]):
    """Engineer visibility rules of business partners."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ClientAccessPermission)

    async def get_active(self, business_partner_id: UUID) -> list[ClientAccessPermission]:
        stmt = select(ClientAccessPermission).where(
            and_(
                ClientAccessPermission.business_partner_id == business_partner_id,
                ClientAccessPermission.is_active.is_(True),
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def deactivate_all(self, business_partner_id: UUID) -> int:
        """Switch every active rule of the partner off."""
        try:
            result = await self.session.execute(
                update(ClientAccessPermission)
                .where(
                    and_(
                        ClientAccessPermission.business_partner_id
                        == business_partner_id,
                        ClientAccessPermission.is_active.is_(True),
                    )
                )
                .values(is_active=False)
                .execution_options(synchronize_session=False)
            )
            await self.session.flush()
            return int(result.rowcount or 0)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error(
                "Failed to deactivate access permissions",
                business_partner_id=str(business_partner_id),
                error=str(exc),
            )
            raise exc

    async def add_rules(
        self,
        business_partner_id: UUID,
        permission_type: AccessPermissionType,
        engineer_ids: list[UUID | None],
        created_by: UUID | None = None,
    ) -> list[ClientAccessPermission]:
        rows = [
            ClientAccessPermission(
                business_partner_id=business_partner_id,
                engineer_id=engineer_id,
                permission_type=permission_type,
                is_active=True,
                created_by=created_by,
            )
            for engineer_id in engineer_ids
        ]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    async def delete_for_engineer(
        self, business_partner_id: UUID, engineer_id: UUID
    ) -> int:
        """Remove every rule of the partner naming ``engineer_id``."""
        result = await self.session.execute(
            delete(ClientAccessPermission).where(
                and_(
                    ClientAccessPermission.business_partner_id == business_partner_id,
                    ClientAccessPermission.engineer_id == engineer_id,
                )
            )
        )
        await self.session.flush()
        return int(result.rowcount or 0)


class EngineerNgListRepository(BaseRepository[EngineerNgList]):
    """Engineers hidden from business partners."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, EngineerNgList)

    async def list_for_partner(self, business_partner_id: UUID) -> list[EngineerNgList]:
        stmt = (
            select(EngineerNgList)
            .where(EngineerNgList.business_partner_id == business_partner_id)
            .order_by(EngineerNgList.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def engineer_ids(self, business_partner_id: UUID) -> set[UUID]:
        stmt = select(EngineerNgList.engineer_id).where(
            EngineerNgList.business_partner_id == business_partner_id
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def find(
        self, business_partner_id: UUID, engineer_id: UUID
    ) -> EngineerNgList | None:
        stmt = select(EngineerNgList).where(
            and_(
                EngineerNgList.business_partner_id == business_partner_id,
                EngineerNgList.engineer_id == engineer_id,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def remove(self, business_partner_id: UUID, engineer_id: UUID) -> int:
        result = await self.session.execute(
            delete(EngineerNgList).where(
                and_(
                    EngineerNgList.business_partner_id == business_partner_id,
                    EngineerNgList.engineer_id == engineer_id,
                )
            )
        )
        await self.session.flush()
        return int(result.rowcount or 0)
