"""
Approach endpoints: outreach drafts, sending, history and received approaches.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import Principal
from ...core.database import get_db
from ...core.exceptions import SESHubError
from ...core.logger import get_logger
from ...models.approach import Approach, ApproachStatus, ApproachType
from ...services.approach import ApproachService
from ..dependencies import get_current_company_id, get_current_staff, require_permission
from ..schemas.approach import (
    ApproachCreate,
    ApproachListResponse,
    ApproachResponse,
    ApproachStatistics,
    ApproachStatusUpdate,
)

router = APIRouter(dependencies=[Depends(get_current_staff)])
logger = get_logger(__name__)

require_approach_view = require_permission("approach", "view", "company")


def _list_response(
    approaches: list[Approach], total: int, page: int, limit: int
) -> ApproachListResponse:
    return ApproachListResponse(
        approaches=[ApproachResponse.model_validate(a) for a in approaches],
        total=total,
        page=page,
        limit=limit,
    )


async def _create(
    service: ApproachService, payload: ApproachCreate, principal: Principal, send: bool
) -> Approach:
    fields = payload.model_dump()
    try:
        if send:
            return await service.send_approach(principal.id, **fields)
        return await service.create_draft(principal.id, **fields)
    except (HTTPException, SESHubError):
        await service.db.rollback()
        raise
    except Exception as e:
        await service.db.rollback()
        logger.error("Failed to create approach", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create approach",
        )


@router.get("/approaches/history", response_model=ApproachListResponse)
async def list_sent_approaches(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    approach_status: ApproachStatus | None = Query(None, alias="status"),
    approach_type: ApproachType | None = Query(None),
    sent_from: datetime | None = Query(None),
    sent_to: datetime | None = Query(None),
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_approach_view),
) -> ApproachListResponse:
    """Approaches this company created, newest send first."""
    logger.info(
        "Listing approach history",
        page=page,
        limit=limit,
        status=approach_status.value if approach_status else None,
        company_id=str(company_id),
        user_id=str(principal.id),
    )
    approaches, total = await ApproachService(db, company_id).list_sent(
        page=page,
        limit=limit,
        status=approach_status,
        approach_type=approach_type,
        sent_from=sent_from,
        sent_to=sent_to,
    )
    return _list_response(approaches, total, page, limit)


@router.get("/approaches/received", response_model=ApproachListResponse)
async def list_received_approaches(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_approach_view),
) -> ApproachListResponse:
    approaches, total = await ApproachService(db, company_id).list_received(
        page=page, limit=limit
    )
    return _list_response(approaches, total, page, limit)


@router.get("/approaches/statistics", response_model=ApproachStatistics)
async def get_approach_statistics(
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_approach_view),
) -> ApproachStatistics:
    stats = await ApproachService(db, company_id).get_statistics()
    return ApproachStatistics(**stats)


@router.post(
    "/approaches", response_model=ApproachResponse, status_code=status.HTTP_201_CREATED
)
async def create_approach(
    payload: ApproachCreate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("approach", "create")),
) -> Approach:
    """Save an approach as a draft."""
    logger.info(
        "Creating approach draft",
        company_id=str(company_id),
        approach_type=payload.approach_type.value,
        user_id=str(principal.id),
    )
    return await _create(ApproachService(db, company_id), payload, principal, send=False)


@router.post(
    "/approaches/send",
    response_model=ApproachResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_new_approach(
    payload: ApproachCreate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("approach", "send")),
) -> Approach:
    """Create and send an approach in one request."""
    logger.info(
        "Sending approach",
        company_id=str(company_id),
        approach_type=payload.approach_type.value,
        user_id=str(principal.id),
    )
    return await _create(ApproachService(db, company_id), payload, principal, send=True)


@router.post("/approaches/{approach_id}/send", response_model=ApproachResponse)
async def send_draft_approach(
    approach_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("approach", "send")),
) -> Approach:
    return await ApproachService(db, company_id).send(approach_id, principal.id)


@router.get("/approaches/{approach_id}", response_model=ApproachResponse)
async def get_approach(
    approach_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_approach_view),
) -> Approach:
    return await ApproachService(db, company_id).get_approach(approach_id)


@router.put("/approaches/{approach_id}/status", response_model=ApproachResponse)
async def update_approach_status(
    approach_id: UUID,
    payload: ApproachStatusUpdate,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("approach", "update")),
) -> Approach:
    logger.info(
        "Updating approach status",
        approach_id=str(approach_id),
        status=payload.status.value,
        user_id=str(principal.id),
    )
    return await ApproachService(db, company_id).update_status(
        approach_id, payload.status
    )


@router.delete("/approaches/{approach_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_approach(
    approach_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("approach", "delete")),
) -> Response:
    await ApproachService(db, company_id).delete_approach(approach_id)
    logger.info(
        "Approach deleted via API", approach_id=str(approach_id), user_id=str(principal.id)
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
