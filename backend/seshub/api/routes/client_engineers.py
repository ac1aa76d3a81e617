"""Engineers as seen by a business partner's client users."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import Principal
from ...core.database import get_db
from ...core.logger import get_logger
from ...models.business_partner import BusinessPartner
from ...models.client_user import ViewAction
from ...repositories.engineer import EngineerRepository
from ...services.access_control import AccessControlService
from ..dependencies import (
    client_context,
    get_client_partner,
    require_client_user,
    require_permission,
)
from ..schemas.client import ClientEngineerDetailResponse, ClientEngineerListResponse
from ..schemas.engineer import EngineerResponse, Pagination

router = APIRouter(dependencies=[Depends(require_client_user)])
logger = get_logger(__name__)


def _split_skills(skills: str | None) -> list[str]:
    return [s.strip() for s in (skills or "").split(",") if s.strip()]


async def _viewable_page(
    service: AccessControlService,
    partner: BusinessPartner,
    page: int,
    limit: int,
    search: str | None,
    skills: str | None,
    availability: str | None,
    min_experience: int | None,
) -> ClientEngineerListResponse:
    result = await service.get_viewable_engineers(
        partner,
        page=page,
        limit=limit,
        search=search,
        skills=_split_skills(skills),
        availability=availability,
        min_experience=min_experience,
    )
    return ClientEngineerListResponse(
        engineers=[EngineerResponse.model_validate(e) for e in result["engineers"]],
        permission_type=result["permission_type"],
        pagination=Pagination(**result["pagination"]),
    )


@router.get("/engineers", response_model=ClientEngineerListResponse)
async def list_client_engineers(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=200),
    skills: str | None = Query(None, description="Comma separated skill names"),
    availability: str | None = Query(None, description="available, waiting, scheduled or all"),
    min_experience: int | None = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
    partner: BusinessPartner = Depends(get_client_partner),
    principal: Principal = Depends(require_permission("engineer", "view", "allowed")),
) -> ClientEngineerListResponse:
    """Engineers the partner may see under its access permissions."""
    service = AccessControlService(db)
    response = await _viewable_page(
        service, partner, page, limit, search, skills, availability, min_experience
    )
    await service.log_client_view(
        principal.id, ViewAction.LIST_ENGINEERS.value, **client_context(request)
    )
    return response


@router.get("/engineers/search", response_model=ClientEngineerListResponse)
async def search_client_engineers(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=200),
    skills: str | None = Query(None, description="Comma separated skill names"),
    availability: str | None = Query(None),
    min_experience: int | None = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
    partner: BusinessPartner = Depends(get_client_partner),
    principal: Principal = Depends(require_permission("skillsheet", "search", "allowed")),
) -> ClientEngineerListResponse:
    service = AccessControlService(db)
    response = await _viewable_page(
        service, partner, page, limit, search, skills, availability, min_experience
    )
    await service.log_client_view(
        principal.id, ViewAction.SEARCH_ENGINEERS.value, **client_context(request)
    )
    return response


@router.get("/engineers/{engineer_id}", response_model=ClientEngineerDetailResponse)
async def get_client_engineer(
    engineer_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    partner: BusinessPartner = Depends(get_client_partner),
    principal: Principal = Depends(require_permission("engineer", "view", "allowed")),
) -> ClientEngineerDetailResponse:
    """One engineer; 403 when the partner's permissions or NG list hide them."""
    engineer = await EngineerRepository(db, partner.company_id).get_by_id(engineer_id)
    if engineer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Engineer not found"
        )

    service = AccessControlService(db)
    if not await service.can_view_engineer(partner, engineer):
        logger.warning(
            "Client denied engineer detail",
            client_user_id=str(principal.id),
            engineer_id=str(engineer_id),
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to view this engineer",
        )

    permission_type, _ = await service.resolve_permission(partner.id)
    response = ClientEngineerDetailResponse(
        engineer=EngineerResponse.model_validate(engineer),
        permission_type=permission_type,
    )
    await service.log_client_view(
        principal.id,
        ViewAction.VIEW_ENGINEER_DETAIL.value,
        engineer_id=engineer.id,
        **client_context(request),
    )
    return response
