"""Offers received by the SES company and its engineers' answers."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import Principal
from ...core.database import get_db
from ...core.logger import get_logger
from ...models.offer import Offer, OfferEngineer
from ...services.offer import ReceivedOfferService
from ..dependencies import (
    get_current_company_id,
    get_current_staff,
    require_any_permission,
    require_permission,
)
from ..schemas.offer import (
    EngineerResponseRequest,
    OfferEngineerResponse,
    OfferListResponse,
    OfferResponse,
)

router = APIRouter(dependencies=[Depends(get_current_staff)])
logger = get_logger(__name__)


@router.get("/offers/received", response_model=OfferListResponse)
async def list_received_offers(
    page: int = Query(1),
    limit: int = Query(20),
    status_filter: str | None = Query(None, alias="status"),
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_permission("offer", "view", "company")),
) -> OfferListResponse:
    offers, total = await ReceivedOfferService(db, company_id).list_received(
        page=page,
        limit=limit,
        status=status_filter.upper() if status_filter else None,
    )
    return OfferListResponse(
        offers=[OfferResponse.model_validate(o) for o in offers],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/offers/received/{offer_id}", response_model=OfferResponse)
async def get_received_offer(
    offer_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    _principal: Principal = Depends(require_permission("offer", "view", "company")),
) -> Offer:
    return await ReceivedOfferService(db, company_id).get_received(offer_id)


@router.post("/offers/received/{offer_id}/open", response_model=OfferResponse)
async def open_received_offer(
    offer_id: UUID,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("offer", "view", "company")),
) -> Offer:
    """Mark the offer as seen. Only the first call records ``opened_at``."""
    logger.info("Opening offer", offer_id=str(offer_id), user_id=str(principal.id))
    return await ReceivedOfferService(db, company_id).mark_opened(offer_id)


@router.post(
    "/offers/received/{offer_id}/engineers/{engineer_id}/response",
    response_model=OfferEngineerResponse,
)
async def record_engineer_response(
    offer_id: UUID,
    engineer_id: UUID,
    payload: EngineerResponseRequest,
    company_id: UUID = Depends(get_current_company_id),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(
        require_any_permission(("offer", "update"), ("offer", "respond"))
    ),
) -> OfferEngineer:
    """
    Record one engineer's answer.

    The offer's own status follows: any acceptance accepts it, all declines
    decline it.
    """
    logger.info(
        "Recording offer response",
        offer_id=str(offer_id),
        engineer_id=str(engineer_id),
        response=payload.response,
        user_id=str(principal.id),
    )
    return await ReceivedOfferService(db, company_id).record_response(
        offer_id, engineer_id, payload.response, comment=payload.comment
    )
