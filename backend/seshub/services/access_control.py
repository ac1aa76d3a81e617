"""
Engineer visibility for business partners.

A partner sees the engineers of its SES company according to its active
``ClientAccessPermission`` rows; engineers on the partner's NG list are never
visible. A partner without any active row has full access.
"""

from __future__ import annotations

import math
import uuid
from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.logger import get_logger
from ..models.business_partner import (
    AccessPermissionType,
    BusinessPartner,
    EngineerNgList,
)
from ..models.client_user import ClientViewLog
from ..models.engineer import WAITING_STATUSES, Engineer, EngineerStatus
from ..repositories.business_partner import (
    AccessPermissionRepository,
    BusinessPartnerRepository,
    EngineerNgListRepository,
)
from ..repositories.client_user import ClientViewLogRepository
from ..repositories.engineer import EngineerRepository

logger = get_logger(__name__)

# Client-side availability filter values
AVAILABILITY_FILTERS: dict[str, tuple[EngineerStatus, ...]] = {
    "available": (EngineerStatus.AVAILABLE, *WAITING_STATUSES),
    "waiting": WAITING_STATUSES,
    "scheduled": (EngineerStatus.SCHEDULED,),
}

MAX_VIEW_LOG_ACTION_LENGTH = 50


class AccessControlService:
    """Partner access permissions, NG lists and client view logging."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.permission_repo = AccessPermissionRepository(db)
        self.ng_repo = EngineerNgListRepository(db)
        self.view_log_repo = ClientViewLogRepository(db)

    async def validate_business_partner(
        self, business_partner_id: uuid.UUID, ses_company_id: uuid.UUID
    ) -> BusinessPartner:
        """Return the partner if it belongs to ``ses_company_id``."""
        partner = await BusinessPartnerRepository(self.db, ses_company_id).get_by_id(
            business_partner_id
        )
        if partner is None:
            raise NotFoundError(
                "Business partner",
                details={"business_partner_id": str(business_partner_id)},
            )
        return partner

    async def resolve_permission(
        self, business_partner_id: uuid.UUID
    ) -> tuple[AccessPermissionType, set[uuid.UUID]]:
        """Effective permission type and the engineer ids it names."""
        rules = await self.permission_repo.get_active(business_partner_id)
        if not rules:
            return AccessPermissionType.FULL_ACCESS, set()

        permission_type = rules[0].permission_type
        engineer_ids = {
            rule.engineer_id
            for rule in rules
            if rule.engineer_id is not None and rule.permission_type == permission_type
        }
        return permission_type, engineer_ids

    async def set_access_permissions(
        self,
        business_partner_id: uuid.UUID,
        ses_company_id: uuid.UUID,
        permission_type: AccessPermissionType,
        engineer_ids: list[uuid.UUID] | None = None,
        updated_by: uuid.UUID | None = None,
    ) -> dict[str, Any]:
        await self.validate_business_partner(business_partner_id, ses_company_id)

        engineer_ids = list(dict.fromkeys(engineer_ids or []))
        if engineer_ids:
            owned = await EngineerRepository(self.db, ses_company_id).get_many(engineer_ids)
            missing = set(engineer_ids) - {engineer.id for engineer in owned}
            if missing:
                raise ValidationError(
                    "Some engineers do not belong to this company",
                    field="engineer_ids",
                    details={"engineer_ids": sorted(str(i) for i in missing)},
                )

        await self.permission_repo.deactivate_all(business_partner_id)

        if permission_type == AccessPermissionType.SELECTED_ONLY and engineer_ids:
            targets: list[uuid.UUID | None] = list(engineer_ids)
        else:
            targets = [None]
        await self.permission_repo.add_rules(
            business_partner_id, permission_type, targets, created_by=updated_by
        )
        await self.db.commit()

        logger.info(
            "Access permissions updated",
            business_partner_id=str(business_partner_id),
            permission_type=permission_type.value,
            engineer_count=len(engineer_ids),
        )
        return await self.get_access_permissions(business_partner_id, ses_company_id)

    async def get_access_permissions(
        self, business_partner_id: uuid.UUID, ses_company_id: uuid.UUID
    ) -> dict[str, Any]:
        await self.validate_business_partner(business_partner_id, ses_company_id)
        permission_type, engineer_ids = await self.resolve_permission(business_partner_id)
        ng_ids = await self.ng_repo.engineer_ids(business_partner_id)
        return {
            "business_partner_id": business_partner_id,
            "permission_type": permission_type,
            "engineer_ids": sorted(engineer_ids, key=str),
            "ng_engineer_ids": sorted(ng_ids, key=str),
        }

    async def can_view_engineer(
        self, partner: BusinessPartner, engineer: Engineer
    ) -> bool:
        if (
            engineer.company_id != partner.company_id
            or engineer.is_deleted
            or not engineer.is_active
        ):
            return False

        if engineer.id in await self.ng_repo.engineer_ids(partner.id):
            return False

        rules = await self.permission_repo.get_active(partner.id)
        if not rules:
            return True

        permission_type = rules[0].permission_type
        if permission_type == AccessPermissionType.FULL_ACCESS:
            return True
        if permission_type == AccessPermissionType.WAITING_ONLY:
            return engineer.current_status in WAITING_STATUSES
        if permission_type == AccessPermissionType.SELECTED_ONLY:
            return any(rule.engineer_id == engineer.id for rule in rules)

        raise AuthorizationError(
            "Unknown access permission type",
            details={"permission_type": str(permission_type)},
        )

    async def get_viewable_engineers(
        self,
        partner: BusinessPartner,
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
        skills: list[str] | None = None,
        availability: str | None = None,
        min_experience: int | None = None,
    ) -> dict[str, Any]:
        """Page of engineers the partner may view plus pagination metadata."""
        permission_type, allowed_ids = await self.resolve_permission(partner.id)
        ng_ids = await self.ng_repo.engineer_ids(partner.id)
        engineer_repo = EngineerRepository(self.db, partner.company_id)

        conditions = [*engineer_repo._scope(), Engineer.is_active.is_(True)]
        if ng_ids:
            conditions.append(Engineer.id.not_in(list(ng_ids)))

        if permission_type == AccessPermissionType.WAITING_ONLY:
            conditions.append(Engineer.current_status.in_(list(WAITING_STATUSES)))
        elif permission_type == AccessPermissionType.SELECTED_ONLY:
            if not allowed_ids:
                return self._page([], 0, page, limit, permission_type)
            conditions.append(Engineer.id.in_(list(allowed_ids)))

        if search and search.strip():
            conditions.append(engineer_repo.search_condition(search))
        if availability and availability != "all":
            statuses = AVAILABILITY_FILTERS.get(availability)
            if statuses is None:
                raise ValidationError(
                    f"Invalid availability filter: {availability}", field="availability"
                )
            conditions.append(Engineer.current_status.in_(list(statuses)))
        if min_experience is not None:
            conditions.append(Engineer.years_of_experience >= min_experience)

        stmt = select(Engineer).where(and_(*conditions)).order_by(
            Engineer.created_at.desc(), Engineer.id
        )
        offset = (page - 1) * limit

        wanted_skills = {s.strip().lower() for s in skills or [] if s and s.strip()}
        if wanted_skills:
            # Skills live in JSON lists, so filter before slicing the page
            result = await self.db.execute(stmt)
            matching = [
                engineer
                for engineer in result.scalars().all()
                if engineer.skill_sheet is not None
                and wanted_skills & engineer.skill_sheet.skill_names()
            ]
            return self._page(
                matching[offset : offset + limit], len(matching), page, limit, permission_type
            )

        total_stmt = select(func.count(Engineer.id)).where(and_(*conditions))
        total = int((await self.db.execute(total_stmt)).scalar() or 0)
        result = await self.db.execute(stmt.offset(offset).limit(limit))
        return self._page(list(result.scalars().all()), total, page, limit, permission_type)

    @staticmethod
    def _page(
        engineers: list[Engineer],
        total: int,
        page: int,
        limit: int,
        permission_type: AccessPermissionType,
    ) -> dict[str, Any]:
        return {
            "engineers": engineers,
            "permission_type": permission_type,
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": math.ceil(total / limit) if limit else 0,
            },
        }

    async def get_ng_list(
        self, business_partner_id: uuid.UUID, ses_company_id: uuid.UUID
    ) -> list[EngineerNgList]:
        await self.validate_business_partner(business_partner_id, ses_company_id)
        return await self.ng_repo.list_for_partner(business_partner_id)

    async def add_to_ng_list(
        self,
        business_partner_id: uuid.UUID,
        ses_company_id: uuid.UUID,
        engineer_id: uuid.UUID,
        reason: str | None = None,
        created_by: uuid.UUID | None = None,
    ) -> EngineerNgList:
        await self.validate_business_partner(business_partner_id, ses_company_id)

        engineer = await EngineerRepository(self.db, ses_company_id).get_by_id(engineer_id)
        if engineer is None:
            raise ValidationError("Engineer not found", field="engineer_id")

        if await self.ng_repo.find(business_partner_id, engineer_id) is not None:
            raise ValidationError(
                "Engineer is already on the NG list", field="engineer_id"
            )

        entry = await self.ng_repo.create(
            business_partner_id=business_partner_id,
            engineer_id=engineer_id,
            reason=reason,
            created_by=created_by,
        )
        await self.permission_repo.delete_for_engineer(business_partner_id, engineer_id)
        await self.db.commit()
        await self.db.refresh(entry)

        logger.info(
            "Engineer added to NG list",
            business_partner_id=str(business_partner_id),
            engineer_id=str(engineer_id),
        )
        return entry

    async def remove_from_ng_list(
        self,
        business_partner_id: uuid.UUID,
        ses_company_id: uuid.UUID,
        engineer_id: uuid.UUID,
    ) -> None:
        await self.validate_business_partner(business_partner_id, ses_company_id)

        removed = await self.ng_repo.remove(business_partner_id, engineer_id)
        if removed == 0:
            raise ValidationError("Engineer is not on the NG list", field="engineer_id")
        await self.db.commit()

        logger.info(
            "Engineer removed from NG list",
            business_partner_id=str(business_partner_id),
            engineer_id=str(engineer_id),
        )

    async def log_client_view(
        self,
        client_user_id: uuid.UUID,
        action: str,
        engineer_id: uuid.UUID | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ClientViewLog:
        entry = await self.view_log_repo.create(
            client_user_id=client_user_id,
            engineer_id=engineer_id,
            action=action[:MAX_VIEW_LOG_ACTION_LENGTH],
            ip_address=ip_address,
            user_agent=user_agent[:500] if user_agent else None,
        )
        await self.db.commit()
        return entry
