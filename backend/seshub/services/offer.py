"""
Offer services.

``OfferService`` works for the issuing client company (behind one business
partner); ``ReceivedOfferService`` works for the SES company whose engineers
the offers name.
"""

from __future__ import annotations

import calendar
import uuid
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import as_utc, utcnow
from ..core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    NotFoundError,
    ValidationError,
)
from ..core.logger import get_logger
from ..domain.value_objects import OfferStatus
from ..models.business_partner import BusinessPartner
from ..models.offer import Offer, OfferEngineer, OfferEngineerState, OfferState
from ..repositories.engineer import EngineerRepository
from ..repositories.offer import OfferRepository, ReceivedOfferRepository, load_offer
from .access_control import AccessControlService
from .offer_validator import offer_validator, parse_period_dates

logger = get_logger(__name__)

REMINDABLE_STATES = (OfferState.SENT, OfferState.OPENED, OfferState.PENDING)
NON_WITHDRAWABLE_STATES = (OfferState.ACCEPTED, OfferState.WITHDRAWN)
ENGINEER_RESPONSES = (OfferStatus.PENDING, OfferStatus.ACCEPTED, OfferStatus.DECLINED)
DEFAULT_HISTORY_PERIOD = "last_6_months"


def _months_ago(now: datetime, months: int) -> datetime:
    month_index = now.month - 1 - months
    year = now.year + month_index // 12
    month = month_index % 12 + 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def period_start(period: str | None, now: datetime | None = None) -> datetime:
    """Start of a history period ending now; unknown periods mean six months."""
    now = now or utcnow()
    if period == "last_week":
        return now - timedelta(days=7)
    if period == "last_month":
        return _months_ago(now, 1)
    if period == "last_3_months":
        return _months_ago(now, 3)
    if period == "last_year":
        return _months_ago(now, 12)
    return _months_ago(now, 6)


def _percentage(part: int, total: int) -> int:
    return round(part / total * 100) if total else 0


class OfferService:
    """Offers issued by one client company."""

    def __init__(self, db: AsyncSession, company_id: uuid.UUID) -> None:
        self.db = db
        self.company_id = company_id
        self.repo = OfferRepository(db, company_id)
        self.access_control = AccessControlService(db)

    async def create_offer(
        self,
        partner: BusinessPartner,
        data: Mapping[str, Any],
        created_by: uuid.UUID,
    ) -> Offer:
        offer_validator.validate_create(data)
        details = data["project_details"]
        engineer_ids: list[uuid.UUID] = list(dict.fromkeys(data["engineer_ids"]))

        engineers = await EngineerRepository(self.db, partner.company_id).get_many(
            engineer_ids
        )
        by_id = {engineer.id: engineer for engineer in engineers}
        rejected = [
            str(engineer_id)
            for engineer_id in engineer_ids
            if engineer_id not in by_id
            or not await self.access_control.can_view_engineer(partner, by_id[engineer_id])
        ]
        if rejected:
            raise AuthorizationError(
                "Some engineers are not available to this partner",
                details={"engineer_ids": rejected},
            )

        start, end = parse_period_dates(details)
        now = utcnow()
        offer = await self.repo.create(
            offer_number=await self.repo.next_offer_number(now.year),
            ses_company_id=partner.company_id,
            business_partner_id=partner.id,
            status=OfferState.SENT,
            project_name=details["name"].strip(),
            project_period_start=start,
            project_period_end=end,
            required_skills=list(details["required_skills"]),
            project_description=details["description"],
            location=details.get("location"),
            rate_min=details.get("rate_min"),
            rate_max=details.get("rate_max"),
            remarks=details.get("remarks"),
            sent_at=now,
            reminder_count=0,
            created_by=created_by,
        )
        await self.repo.add_engineers(offer, engineer_ids)
        await self.db.commit()
        offer = await load_offer(self.db, offer.id)

        logger.info(
            "Offer created",
            offer_id=str(offer.id),
            offer_number=offer.offer_number,
            company_id=str(self.company_id),
            engineer_count=len(engineer_ids),
        )
        return offer

    async def list_offers(
        self, page: int = 1, limit: int = 20, status: str | None = None
    ) -> tuple[list[Offer], int]:
        offer_validator.validate_search_params(page=page, limit=limit, status=status)
        statuses = [OfferState(status)] if status else None
        return await self.repo.find_offers(
            statuses=statuses, skip=(page - 1) * limit, limit=limit
        )

    async def get_offer_history(
        self,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
        search: str | None = None,
        period: str | None = None,
    ) -> tuple[list[Offer], int]:
        offer_validator.validate_search_params(
            page=page, limit=limit, status=status, period=period
        )
        now = utcnow()
        return await self.repo.find_offers(
            statuses=[OfferState(status)] if status else None,
            sent_from=period_start(period or DEFAULT_HISTORY_PERIOD, now),
            sent_to=now,
            search=search,
            skip=(page - 1) * limit,
            limit=limit,
        )

    async def get_offer(self, offer_id: uuid.UUID) -> Offer:
        offer = await self.repo.get_by_id(offer_id)
        if offer is None:
            raise NotFoundError("Offer", details={"offer_id": str(offer_id)})
        return offer

    async def update_status(self, offer_id: uuid.UUID, status: str) -> Offer:
        offer_validator.validate_status_update(status)
        offer = await self.get_offer(offer_id)

        if status == "withdrawn":
            if offer.status in NON_WITHDRAWABLE_STATES:
                raise BusinessLogicError(
                    f"Offer in status {offer.status.value} cannot be withdrawn"
                )
            offer.status = OfferState.WITHDRAWN
        else:
            self._ensure_remindable(offer)
            offer.status = OfferState.SENT
            self._bump_reminder(offer)

        await self.db.commit()
        offer = await load_offer(self.db, offer_id)
        logger.info("Offer status updated", offer_id=str(offer_id), status=status)
        return offer

    @staticmethod
    def _ensure_remindable(offer: Offer) -> None:
        if offer.status not in REMINDABLE_STATES:
            raise BusinessLogicError(
                f"Offer in status {offer.status.value} cannot be reminded",
                details={"status": offer.status.value},
            )

    @staticmethod
    def _bump_reminder(offer: Offer) -> None:
        offer.reminder_sent_at = utcnow()
        offer.reminder_count = (offer.reminder_count or 0) + 1

    async def send_reminder(self, offer_id: uuid.UUID) -> Offer:
        offer = await self.get_offer(offer_id)
        self._ensure_remindable(offer)
        self._bump_reminder(offer)
        await self.db.commit()
        offer = await load_offer(self.db, offer_id)
        logger.info(
            "Offer reminder sent",
            offer_id=str(offer_id),
            reminder_count=offer.reminder_count,
        )
        return offer

    async def bulk_action(self, offer_ids: list[uuid.UUID], action: str) -> dict[str, int]:
        offer_validator.validate_bulk_action(offer_ids, action)
        if action == "remind":
            return await self.bulk_remind(offer_ids)
        return await self.bulk_withdraw(offer_ids)

    async def bulk_remind(self, offer_ids: list[uuid.UUID]) -> dict[str, int]:
        offers = await self.repo.get_many(offer_ids)
        valid = [offer for offer in offers if offer.status in REMINDABLE_STATES]
        for offer in valid:
            self._bump_reminder(offer)
        await self.db.commit()

        result = {"success": len(valid), "failed": len(offer_ids) - len(valid)}
        logger.info("Bulk reminder processed", company_id=str(self.company_id), **result)
        return result

    async def bulk_withdraw(self, offer_ids: list[uuid.UUID]) -> dict[str, int]:
        offers = await self.repo.get_many(offer_ids)
        valid = [offer for offer in offers if offer.status not in NON_WITHDRAWABLE_STATES]
        for offer in valid:
            offer.status = OfferState.WITHDRAWN
        await self.db.commit()

        result = {"success": len(valid), "failed": len(offer_ids) - len(valid)}
        logger.info("Bulk withdraw processed", company_id=str(self.company_id), **result)
        return result

    async def get_statistics(self) -> dict[str, Any]:
        now = utcnow()
        counts = await self.repo.count_by_status()
        total = sum(counts.values())

        intervals = await self.repo.response_intervals()
        if intervals:
            seconds = sum(
                (as_utc(responded) - as_utc(sent)).total_seconds()
                for sent, responded in intervals
            )
            average_days = round(seconds / len(intervals) / 86400, 1)
        else:
            average_days = 0

        return {
            "total_offers": total,
            "monthly_offers": await self.repo.count_sent_between(_months_ago(now, 1), now),
            "weekly_offers": await self.repo.count_sent_between(now - timedelta(days=7), now),
            "today_offers": await self.repo.count_sent_between(
                now.replace(hour=0, minute=0, second=0, microsecond=0), now
            ),
            "acceptance_rate": _percentage(counts[OfferState.ACCEPTED], total),
            "decline_rate": _percentage(counts[OfferState.DECLINED], total),
            "average_response_time": average_days,
        }

    async def get_offer_board(self, partner: BusinessPartner) -> dict[str, Any]:
        """Summary counts plus every viewable engineer with its latest offer status."""
        now = utcnow()
        viewable = await self.access_control.get_viewable_engineers(
            partner, page=1, limit=10_000
        )
        engineers = viewable["engineers"]
        latest = await self.repo.latest_status_by_engineer([e.id for e in engineers])
        counts = await self.repo.count_by_status()

        return {
            "available_engineers": viewable["pagination"]["total"],
            "monthly_offers": await self.repo.count_sent_between(_months_ago(now, 1), now),
            "today_offers": await self.repo.count_sent_between(
                now.replace(hour=0, minute=0, second=0, microsecond=0), now
            ),
            "accepted": counts[OfferState.ACCEPTED],
            "pending": counts[OfferState.PENDING],
            "declined": counts[OfferState.DECLINED],
            "permission_type": viewable["permission_type"],
            "engineers": [
                {"engineer": engineer, "offer_status": latest.get(engineer.id)}
                for engineer in engineers
            ],
        }


class ReceivedOfferService:
    """Offers received by one SES company and its engineers' answers."""

    def __init__(self, db: AsyncSession, ses_company_id: uuid.UUID) -> None:
        self.db = db
        self.ses_company_id = ses_company_id
        self.repo = ReceivedOfferRepository(db, ses_company_id)

    async def list_received(
        self, page: int = 1, limit: int = 20, status: str | None = None
    ) -> tuple[list[Offer], int]:
        offer_validator.validate_search_params(page=page, limit=limit, status=status)
        return await self.repo.list_received(
            skip=(page - 1) * limit,
            limit=limit,
            status=OfferState(status) if status else None,
        )

    async def get_received(self, offer_id: uuid.UUID) -> Offer:
        offer = await self.repo.get_received(offer_id)
        if offer is None:
            raise NotFoundError("Offer", details={"offer_id": str(offer_id)})
        return offer

    async def mark_opened(self, offer_id: uuid.UUID) -> Offer:
        """First view by the SES company sets ``opened_at`` and moves SENT to OPENED."""
        offer = await self.get_received(offer_id)
        if offer.opened_at is None:
            offer.opened_at = utcnow()
            if offer.status == OfferState.SENT:
                offer.status = OfferState.OPENED
            for offer_engineer in offer.offer_engineers:
                if offer_engineer.individual_status == OfferEngineerState.SENT:
                    offer_engineer.individual_status = OfferEngineerState.OPENED
            await self.db.commit()
            offer = await load_offer(self.db, offer_id)
            logger.info("Offer opened", offer_id=str(offer_id))
        return offer

    @staticmethod
    def _as_status(state: OfferEngineerState) -> OfferStatus:
        if state == OfferEngineerState.OPENED:
            return OfferStatus.SENT
        return OfferStatus(state.value)

    @staticmethod
    def _can_respond(current: OfferStatus, target: OfferStatus) -> bool:
        if current.can_transition_to(target):
            return True
        # A direct answer to a fresh offer passes through PENDING
        return current == OfferStatus.SENT and OfferStatus.PENDING.can_transition_to(target)

    async def record_response(
        self,
        offer_id: uuid.UUID,
        engineer_id: uuid.UUID,
        response: str,
        comment: str | None = None,
    ) -> OfferEngineer:
        offer = await self.get_received(offer_id)
        if offer.status == OfferState.WITHDRAWN:
            raise BusinessLogicError("Offer has been withdrawn")

        offer_engineer = await self.repo.get_offer_engineer(offer_id, engineer_id)
        if offer_engineer is None:
            raise NotFoundError(
                "Offer engineer",
                details={"offer_id": str(offer_id), "engineer_id": str(engineer_id)},
            )

        try:
            target = OfferStatus.from_string(response)
        except ValueError as exc:
            raise ValidationError(str(exc), field="response") from exc
        if target not in ENGINEER_RESPONSES:
            raise ValidationError(
                f"Invalid response: {response}",
                field="response",
                details={"allowed": [s.value for s in ENGINEER_RESPONSES]},
            )

        current = self._as_status(offer_engineer.individual_status)
        if not self._can_respond(current, target):
            raise BusinessLogicError(
                f"Cannot change response from {current.value} to {target.value}",
                details={
                    "current": current.value,
                    "allowed": [s.value for s in current.next_statuses()],
                },
            )

        now = utcnow()
        offer_engineer.individual_status = OfferEngineerState(target.value)
        offer_engineer.response_comment = comment
        if target.is_final:
            offer_engineer.responded_at = now

        self._roll_up(offer, now)
        await self.db.commit()
        offer_engineer = await self.repo.get_offer_engineer(offer_id, engineer_id)

        logger.info(
            "Offer response recorded",
            offer_id=str(offer_id),
            engineer_id=str(engineer_id),
            response=target.value,
            offer_status=offer.status.value,
        )
        return offer_engineer

    @staticmethod
    def _roll_up(offer: Offer, now: datetime) -> None:
        """Derive the offer status from its engineers' answers."""
        states = [oe.individual_status for oe in offer.offer_engineers]
        if OfferEngineerState.ACCEPTED in states:
            offer.status = OfferState.ACCEPTED
        elif states and all(s == OfferEngineerState.DECLINED for s in states):
            offer.status = OfferState.DECLINED
        elif OfferEngineerState.PENDING in states:
            offer.status = OfferState.PENDING
        else:
            return

        if offer.status in (OfferState.ACCEPTED, OfferState.DECLINED) and offer.responded_at is None:
            offer.responded_at = now
