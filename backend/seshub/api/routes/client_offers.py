"""
Offers issued by a client company to its partner SES company's engineers.

Every query is scoped to the caller's client company, so an offer of another
company answers 404.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import Principal
from ...core.database import get_db
from ...core.logger import get_logger
from ...models.business_partner import BusinessPartner
from ...models.client_user import ViewAction
from ...models.offer import Offer
from ...services.access_control import AccessControlService
from ...services.offer import OfferService
from ..dependencies import (
    client_context,
    get_client_partner,
    require_any_permission,
    require_client_user,
    require_permission,
)
from ..schemas.offer import (
    BulkActionRequest,
    BulkActionResponse,
    OfferBoardResponse,
    OfferCreate,
    OfferListResponse,
    OfferResponse,
    OfferStatistics,
    OfferStatusUpdate,
)

router = APIRouter(dependencies=[Depends(require_client_user)])
logger = get_logger(__name__)

require_offer_view = require_permission("offer", "view", "company")
require_offer_write = require_any_permission(
    ("offer", "create"), ("offer", "update"), ("offer", "respond")
)


def _status_filter(value: str | None) -> str | None:
    return value.strip().upper() if value and value.strip() else None


def _offer_list(offers: list[Offer], total: int, page: int, limit: int) -> OfferListResponse:
    return OfferListResponse(
        offers=[OfferResponse.model_validate(o) for o in offers],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("/offers", response_model=OfferResponse, status_code=status.HTTP_201_CREATED)
async def create_offer(
    payload: OfferCreate,
    db: AsyncSession = Depends(get_db),
    partner: BusinessPartner = Depends(get_client_partner),
    principal: Principal = Depends(require_offer_write),
) -> Offer:
    """
    Send an offer for one or more engineers.

    Engineers the partner cannot see are rejected with 403.
    """
    logger.info(
        "Creating offer",
        client_user_id=str(principal.id),
        engineer_count=len(payload.engineer_ids),
    )
    service = OfferService(db, principal.company_id)
    return await service.create_offer(
        partner, payload.model_dump(), created_by=principal.id
    )


@router.get("/offers", response_model=OfferListResponse)
async def list_offers(
    page: int = Query(1),
    limit: int = Query(20),
    status_filter: str | None = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_offer_view),
) -> OfferListResponse:
    offers, total = await OfferService(db, principal.company_id).list_offers(
        page=page, limit=limit, status=_status_filter(status_filter)
    )
    return _offer_list(offers, total, page, limit)


@router.get("/offers/history", response_model=OfferListResponse)
async def get_offer_history(
    page: int = Query(1),
    limit: int = Query(20),
    status_filter: str | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=200),
    period: str | None = Query(
        None,
        description="last_week, last_month, last_3_months, last_6_months or last_year",
    ),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_offer_view),
) -> OfferListResponse:
    """Offers sent within ``period`` (default six months), newest first."""
    offers, total = await OfferService(db, principal.company_id).get_offer_history(
        page=page,
        limit=limit,
        status=_status_filter(status_filter),
        search=search,
        period=period,
    )
    return _offer_list(offers, total, page, limit)


@router.get("/offers/statistics", response_model=OfferStatistics)
async def get_offer_statistics(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_offer_view),
) -> OfferStatistics:
    stats = await OfferService(db, principal.company_id).get_statistics()
    return OfferStatistics(**stats)


@router.get("/offers/board", response_model=OfferBoardResponse)
async def get_offer_board(
    request: Request,
    db: AsyncSession = Depends(get_db),
    partner: BusinessPartner = Depends(get_client_partner),
    principal: Principal = Depends(require_offer_view),
) -> OfferBoardResponse:
    board = await OfferService(db, principal.company_id).get_offer_board(partner)
    response = OfferBoardResponse.model_validate(board, from_attributes=True)

    await AccessControlService(db).log_client_view(
        principal.id, ViewAction.VIEW_OFFER_BOARD.value, **client_context(request)
    )
    return response


@router.post("/offers/bulk-action", response_model=BulkActionResponse)
async def bulk_action(
    payload: BulkActionRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_offer_write),
) -> BulkActionResponse:
    """Remind or withdraw several offers; ineligible ones count as failed."""
    result = await OfferService(db, principal.company_id).bulk_action(
        payload.offer_ids, payload.action
    )
    return BulkActionResponse(**result)


@router.get("/offers/{offer_id}", response_model=OfferResponse)
async def get_offer(
    offer_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_offer_view),
) -> Offer:
    return await OfferService(db, principal.company_id).get_offer(offer_id)


@router.put("/offers/{offer_id}/status", response_model=OfferResponse)
async def update_offer_status(
    offer_id: UUID,
    payload: OfferStatusUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_offer_write),
) -> Offer:
    """``withdrawn`` withdraws the offer; ``reminder_sent`` re-sends it."""
    return await OfferService(db, principal.company_id).update_status(
        offer_id, payload.status
    )


@router.post("/offers/{offer_id}/remind", response_model=OfferResponse)
async def send_reminder(
    offer_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_offer_write),
) -> Offer:
    return await OfferService(db, principal.company_id).send_reminder(offer_id)
