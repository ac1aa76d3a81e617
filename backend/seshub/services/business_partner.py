"""Business partner lifecycle for an SES company."""

import secrets
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError
from ..core.logger import get_logger
from ..models.business_partner import BusinessPartner
from ..repositories.business_partner import BusinessPartnerRepository
from ..repositories.company import CompanyRepository

logger = get_logger(__name__)

URL_TOKEN_BYTES = 32


class BusinessPartnerService:
    """Create, list, update and delete the partners of one SES company."""

    def __init__(self, db: AsyncSession, company_id: uuid.UUID) -> None:
        self.db = db
        self.company_id = company_id
        self.repo = BusinessPartnerRepository(db, company_id)
        self.company_repo = CompanyRepository(db)

    async def create_partner(
        self,
        client_company_name: str,
        created_by: uuid.UUID | None = None,
        access_url: str | None = None,
        **client_fields: Any,
    ) -> BusinessPartner:
        """Link a client company, reusing an existing CLIENT company of that name."""
        client_company = await self.company_repo.get_or_create_client(
            client_company_name.strip(),
            **{key: value for key, value in client_fields.items() if value is not None},
        )
        if await self.repo.get_by_client_company(client_company.id) is not None:
            raise ConflictError(
                "Business partner already exists",
                details={"client_company_id": str(client_company.id)},
            )

        partner = await self.repo.create(
            client_company_id=client_company.id,
            access_url=access_url,
            url_token=secrets.token_urlsafe(URL_TOKEN_BYTES)[:64],
            is_active=True,
            created_by=created_by,
        )
        await self.db.commit()
        await self.db.refresh(partner)

        logger.info(
            "Business partner created",
            business_partner_id=str(partner.id),
            company_id=str(self.company_id),
            client_company_id=str(client_company.id),
        )
        return partner

    async def get_partner(self, partner_id: uuid.UUID) -> BusinessPartner:
        partner = await self.repo.get_by_id(partner_id)
        if partner is None:
            raise NotFoundError(
                "Business partner", details={"business_partner_id": str(partner_id)}
            )
        return partner

    async def list_partners(
        self,
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[BusinessPartner], int]:
        return await self.repo.list_partners(
            skip=(page - 1) * limit, limit=limit, search=search, is_active=is_active
        )

    async def update_partner(
        self, partner_id: uuid.UUID, **fields: Any
    ) -> BusinessPartner:
        await self.get_partner(partner_id)
        partner = await self.repo.update(partner_id, **fields)
        await self.db.commit()
        await self.db.refresh(partner)
        logger.info("Business partner updated", business_partner_id=str(partner_id))
        return partner

    async def delete_partner(self, partner_id: uuid.UUID) -> None:
        """Soft delete; the partner's client users can no longer log in."""
        partner = await self.get_partner(partner_id)
        partner.is_active = False
        await self.repo.delete(partner_id)
        await self.db.commit()
        logger.info("Business partner deleted", business_partner_id=str(partner_id))
