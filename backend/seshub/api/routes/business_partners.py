"""
Business partner endpoints for SES company staff.

Covers the partner lifecycle, engineer visibility (access permissions and NG
list) and the partner's client user accounts.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import Principal
from ...core.database import get_db
from ...core.exceptions import SESHubError
from ...core.logger import get_logger
from ...models.business_partner import BusinessPartner, EngineerNgList
from ...models.client_user import ClientUser
from ...repositories.client_user import ClientUserRepository
from ...services.access_control import AccessControlService
from ...services.business_partner import BusinessPartnerService
from ...services.client_auth import ClientAuthService
from ...services.rbac import RBACService
from ..dependencies import (
    get_current_company_id,
    get_current_staff,
    get_rbac_service,
    require_permission,
)
from ..schemas.business_partner import (
    AccessPermissionResponse,
    AccessPermissionUpdate,
    BusinessPartnerCreate,
    BusinessPartnerListResponse,
    BusinessPartnerResponse,
    BusinessPartnerUpdate,
    ClientUserCreate,
    ClientUserResponse,
    NgListAdd,
    NgListItem,
)

router = APIRouter(dependencies=[Depends(get_current_staff)])
logger = get_logger(__name__)

require_partner_manage = require_permission("partner", "manage")


@router.get("/business-partners", response_model=BusinessPartnerListResponse)
async def list_business_partners(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=200),
    is_active: bool | None = Query(None),
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_permission("partner", "view", "company")),
) -> BusinessPartnerListResponse:
    service = BusinessPartnerService(db, company_id)
    partners, total = await service.list_partners(
        page=page, limit=limit, search=search, is_active=is_active
    )
    return BusinessPartnerListResponse(
        partners=[BusinessPartnerResponse.model_validate(p) for p in partners],
        total=total,
        page=page,
        limit=limit,
    )


@router.post(
    "/business-partners",
    response_model=BusinessPartnerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_business_partner(
    payload: BusinessPartnerCreate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("partner", "create")),
) -> BusinessPartner:
    """
    Link a client company to the current SES company.

    The client company is looked up by name and created when missing.
    """
    logger.info(
        "Creating business partner",
        company_id=str(company_id),
        client_company_name=payload.client_company_name,
    )

    service = BusinessPartnerService(db, company_id)
    try:
        return await service.create_partner(
            client_company_name=payload.client_company_name,
            created_by=principal.id,
            access_url=payload.access_url,
            email_domain=payload.client_email_domain,
            address=payload.client_address,
            phone=payload.client_phone,
        )
    except (HTTPException, SESHubError):
        await db.rollback()
        raise
    except (ValueError, KeyError, TypeError) as e:
        await db.rollback()
        logger.error("Validation error while creating business partner", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid partner data"
        )
    except Exception as e:
        await db.rollback()
        logger.error(
            "Failed to create business partner", error=str(e), exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create business partner",
        )


@router.get(
    "/business-partners/{partner_id}", response_model=BusinessPartnerResponse
)
async def get_business_partner(
    partner_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_permission("partner", "view", "company")),
) -> BusinessPartner:
    return await BusinessPartnerService(db, company_id).get_partner(partner_id)


@router.put(
    "/business-partners/{partner_id}", response_model=BusinessPartnerResponse
)
async def update_business_partner(
    partner_id: UUID,
    payload: BusinessPartnerUpdate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_permission("partner", "update", "company")),
) -> BusinessPartner:
    update_data = payload.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update"
        )
    return await BusinessPartnerService(db, company_id).update_partner(
        partner_id, **update_data
    )


@router.delete(
    "/business-partners/{partner_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_business_partner(
    partner_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_permission("partner", "delete")),
) -> Response:
    await BusinessPartnerService(db, company_id).delete_partner(partner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/business-partners/{partner_id}/access-permissions",
    response_model=AccessPermissionResponse,
)
async def get_access_permissions(
    partner_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_partner_manage),
) -> AccessPermissionResponse:
    """Effective engineer visibility; no rules means full access."""
    result = await AccessControlService(db).get_access_permissions(partner_id, company_id)
    return AccessPermissionResponse(**result)


@router.put(
    "/business-partners/{partner_id}/access-permissions",
    response_model=AccessPermissionResponse,
)
async def set_access_permissions(
    partner_id: UUID,
    payload: AccessPermissionUpdate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_partner_manage),
) -> AccessPermissionResponse:
    """Replace the partner's visibility rules."""
    logger.info(
        "Setting access permissions",
        business_partner_id=str(partner_id),
        permission_type=payload.permission_type.value,
    )
    result = await AccessControlService(db).set_access_permissions(
        partner_id,
        company_id,
        payload.permission_type,
        engineer_ids=payload.engineer_ids,
        updated_by=principal.id,
    )
    return AccessPermissionResponse(**result)


@router.get(
    "/business-partners/{partner_id}/ng-list", response_model=list[NgListItem]
)
async def get_ng_list(
    partner_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_partner_manage),
) -> list[EngineerNgList]:
    return await AccessControlService(db).get_ng_list(partner_id, company_id)


@router.post(
    "/business-partners/{partner_id}/ng-list",
    response_model=NgListItem,
    status_code=status.HTTP_201_CREATED,
)
async def add_to_ng_list(
    partner_id: UUID,
    payload: NgListAdd,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_partner_manage),
) -> EngineerNgList:
    """Hide an engineer from the partner and drop any rule naming them."""
    return await AccessControlService(db).add_to_ng_list(
        partner_id,
        company_id,
        payload.engineer_id,
        reason=payload.reason,
        created_by=principal.id,
    )


@router.delete(
    "/business-partners/{partner_id}/ng-list/{engineer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_from_ng_list(
    partner_id: UUID,
    engineer_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_partner_manage),
) -> Response:
    await AccessControlService(db).remove_from_ng_list(partner_id, company_id, engineer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/business-partners/{partner_id}/client-users",
    response_model=list[ClientUserResponse],
)
async def list_client_users(
    partner_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_partner_manage),
) -> list[ClientUser]:
    partner = await BusinessPartnerService(db, company_id).get_partner(partner_id)
    return await ClientUserRepository(db).list_by_partner(partner.id)


@router.post(
    "/business-partners/{partner_id}/client-users",
    response_model=ClientUserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_client_user(
    partner_id: UUID,
    payload: ClientUserCreate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    rbac_service: RBACService = Depends(get_rbac_service),
    principal: Principal = Depends(require_partner_manage),
) -> ClientUser:
    """Create a login for a person at the partner's client company."""
    partner = await BusinessPartnerService(db, company_id).get_partner(partner_id)
    if not payload.role_name.startswith("client_"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Client users can only hold client roles",
        )

    service = ClientAuthService(db, rbac_service=rbac_service)
    try:
        return await service.create_client_user(
            partner,
            email=payload.email,
            password=payload.password,
            name=payload.name,
            role_name=payload.role_name,
            created_by=principal.id,
            phone=payload.phone,
            department=payload.department,
            position=payload.position,
        )
    except SESHubError:
        await db.rollback()
        raise
    except ValueError as e:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "/business-partners/{partner_id}/client-users/{client_user_id}/unlock",
    response_model=ClientUserResponse,
)
async def unlock_client_user(
    partner_id: UUID,
    client_user_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    rbac_service: RBACService = Depends(get_rbac_service),
    principal: Principal = Depends(require_partner_manage),
) -> ClientUser:
    """Reset a locked client account's failure counter and lock."""
    partner = await BusinessPartnerService(db, company_id).get_partner(partner_id)
    logger.info(
        "Unlocking client user",
        client_user_id=str(client_user_id),
        unlocked_by=str(principal.id),
    )
    return await ClientAuthService(db, rbac_service=rbac_service).unlock(
        partner, client_user_id
    )
