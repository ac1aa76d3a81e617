"""
Tests for issuing offers and recording engineer responses.
"""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from seshub.core.clock import utcnow
from seshub.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    NotFoundError,
    ValidationError,
)
from seshub.models.engineer import EngineerStatus
from seshub.models.offer import OfferEngineerState, OfferState
from seshub.services.access_control import AccessControlService
from seshub.services.offer import (
    OfferService,
    ReceivedOfferService,
    _months_ago,
    period_start,
)


def offer_data(engineer_ids, **details):
    project = {
        "name": "基幹システム刷新",
        "period_start": "2026-12-01",
        "period_end": "2027-05-31",
        "required_skills": ["Java", "Spring"],
        "description": "既存システムのマイクロサービス化",
        "location": "東京都港区",
        "rate_min": 650000,
        "rate_max": 750000,
    }
    project.update(details)
    return {"engineer_ids": list(engineer_ids), "project_details": project}


@pytest.fixture
async def engineers(ses_company, engineer_factory):
    return [
        await engineer_factory(ses_company, "佐藤", "一郎"),
        await engineer_factory(ses_company, "鈴木", "二郎", EngineerStatus.WAITING),
        await engineer_factory(ses_company, "高橋", "三郎", EngineerStatus.WORKING),
    ]


@pytest.fixture
def offer_service(test_session: AsyncSession, partner) -> OfferService:
    return OfferService(test_session, partner.client_company_id)


@pytest.fixture
def received_service(test_session: AsyncSession, ses_company) -> ReceivedOfferService:
    return ReceivedOfferService(test_session, ses_company.id)


@pytest.fixture
def issue(offer_service: OfferService, partner, client_user):
    async def create(engineer_ids, **details):
        return await offer_service.create_offer(
            partner, offer_data(engineer_ids, **details), created_by=client_user.id
        )

    return create


class TestHistoryPeriods:
    def test_months_ago_clamps_day(self) -> None:
        now = datetime(2026, 3, 31, 9, 0, tzinfo=UTC)
        assert _months_ago(now, 1) == datetime(2026, 2, 28, 9, 0, tzinfo=UTC)
        assert _months_ago(now, 3) == datetime(2025, 12, 31, 9, 0, tzinfo=UTC)

    def test_period_start(self) -> None:
        now = datetime(2026, 10, 19, tzinfo=UTC)
        assert period_start("last_week", now) == now - timedelta(days=7)
        assert period_start("last_month", now) == datetime(2026, 9, 19, tzinfo=UTC)
        assert period_start("last_year", now) == datetime(2025, 10, 19, tzinfo=UTC)
        assert period_start(None, now) == datetime(2026, 4, 19, tzinfo=UTC)


class TestCreateOffer:
    @pytest.mark.asyncio
    async def test_create_numbers_offers_sequentially(
        self, issue, engineers, partner, ses_company
    ) -> None:
        first = await issue([engineers[0].id, engineers[1].id])
        second = await issue([engineers[2].id], name="追加案件")

        year = utcnow().year
        assert first.offer_number == f"OFF-{year}-001"
        assert second.offer_number == f"OFF-{year}-002"

        assert first.status == OfferState.SENT
        assert first.reminder_count == 0
        assert first.ses_company_id == ses_company.id
        assert first.business_partner_id == partner.id
        assert first.company_id == partner.client_company_id
        assert {oe.engineer_id for oe in first.offer_engineers} == {
            engineers[0].id,
            engineers[1].id,
        }
        assert all(
            oe.individual_status == OfferEngineerState.SENT for oe in first.offer_engineers
        )

    @pytest.mark.asyncio
    async def test_duplicate_engineer_ids_are_collapsed(self, issue, engineers) -> None:
        offer = await issue([engineers[0].id, engineers[0].id])
        assert len(offer.offer_engineers) == 1

    @pytest.mark.asyncio
    async def test_hidden_engineers_are_rejected(
        self, test_session, issue, engineers, partner, ses_company
    ) -> None:
        await AccessControlService(test_session).add_to_ng_list(
            partner.id, ses_company.id, engineers[1].id
        )

        with pytest.raises(AuthorizationError) as exc_info:
            await issue([engineers[0].id, engineers[1].id])
        assert exc_info.value.details["engineer_ids"] == [str(engineers[1].id)]

    @pytest.mark.asyncio
    async def test_unknown_engineers_are_rejected(self, issue) -> None:
        stranger = uuid.uuid4()
        with pytest.raises(AuthorizationError) as exc_info:
            await issue([stranger])
        assert exc_info.value.details["engineer_ids"] == [str(stranger)]

    @pytest.mark.asyncio
    async def test_inactive_engineers_are_rejected(
        self, issue, engineers, engineer_factory, ses_company
    ) -> None:
        retired = await engineer_factory(ses_company, "退職", "七郎", is_active=False)
        with pytest.raises(AuthorizationError) as exc_info:
            await issue([engineers[0].id, retired.id])
        assert exc_info.value.details["engineer_ids"] == [str(retired.id)]

    @pytest.mark.asyncio
    async def test_invalid_payload(self, issue, engineers) -> None:
        with pytest.raises(ValidationError):
            await issue([engineers[0].id], required_skills=[])


class TestOfferLifecycle:
    @pytest.mark.asyncio
    async def test_withdraw(self, offer_service, issue, engineers) -> None:
        offer = await issue([engineers[0].id])

        withdrawn = await offer_service.update_status(offer.id, "withdrawn")
        assert withdrawn.status == OfferState.WITHDRAWN

        with pytest.raises(BusinessLogicError):
            await offer_service.update_status(offer.id, "withdrawn")
        with pytest.raises(BusinessLogicError):
            await offer_service.send_reminder(offer.id)

    @pytest.mark.asyncio
    async def test_reminders(self, offer_service, issue, engineers) -> None:
        offer = await issue([engineers[0].id])

        reminded = await offer_service.send_reminder(offer.id)
        assert reminded.reminder_count == 1
        assert reminded.reminder_sent_at is not None

        again = await offer_service.update_status(offer.id, "reminder_sent")
        assert again.status == OfferState.SENT
        assert again.reminder_count == 2

    @pytest.mark.asyncio
    async def test_unknown_status(self, offer_service, issue, engineers) -> None:
        offer = await issue([engineers[0].id])
        with pytest.raises(ValidationError):
            await offer_service.update_status(offer.id, "accepted")

    @pytest.mark.asyncio
    async def test_accepted_offer_cannot_be_withdrawn(
        self, offer_service, received_service, issue, engineers
    ) -> None:
        offer = await issue([engineers[0].id])
        await received_service.record_response(offer.id, engineers[0].id, "accepted")

        with pytest.raises(BusinessLogicError):
            await offer_service.update_status(offer.id, "withdrawn")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer", ["ACCEPTED", "DECLINED"])
    async def test_answered_offer_cannot_be_resent(
        self, offer_service, received_service, issue, engineers, answer
    ) -> None:
        offer = await issue([engineers[0].id])
        await received_service.record_response(offer.id, engineers[0].id, answer)

        with pytest.raises(BusinessLogicError) as exc_info:
            await offer_service.update_status(offer.id, "reminder_sent")
        assert exc_info.value.details == {"status": answer}

        reloaded = await offer_service.get_offer(offer.id)
        assert reloaded.status == OfferState(answer)
        assert reloaded.reminder_count == 0

    @pytest.mark.asyncio
    async def test_withdrawn_offer_cannot_be_resent(
        self, offer_service, issue, engineers
    ) -> None:
        offer = await issue([engineers[0].id])
        await offer_service.update_status(offer.id, "withdrawn")

        with pytest.raises(BusinessLogicError):
            await offer_service.update_status(offer.id, "reminder_sent")
        assert (await offer_service.get_offer(offer.id)).status == OfferState.WITHDRAWN
        with pytest.raises(BusinessLogicError):
            await offer_service.update_status(offer.id, "withdrawn")

    @pytest.mark.asyncio
    async def test_get_offer_is_scoped_to_the_issuer(
        self, test_session, offer_service, issue, engineers
    ) -> None:
        offer = await issue([engineers[0].id])
        assert (await offer_service.get_offer(offer.id)).id == offer.id

        with pytest.raises(NotFoundError):
            await OfferService(test_session, uuid.uuid4()).get_offer(offer.id)
        with pytest.raises(NotFoundError):
            await offer_service.get_offer(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_bulk_actions(self, offer_service, issue, engineers) -> None:
        live = await issue([engineers[0].id])
        withdrawn = await issue([engineers[1].id])
        await offer_service.update_status(withdrawn.id, "withdrawn")

        reminded = await offer_service.bulk_action([live.id, withdrawn.id], "remind")
        assert reminded == {"success": 1, "failed": 1}
        assert live.reminder_count == 1

        result = await offer_service.bulk_action(
            [live.id, withdrawn.id, uuid.uuid4()], "withdraw"
        )
        assert result == {"success": 1, "failed": 2}
        assert (await offer_service.get_offer(live.id)).status == OfferState.WITHDRAWN

    @pytest.mark.asyncio
    async def test_bulk_action_validation(self, offer_service) -> None:
        with pytest.raises(ValidationError):
            await offer_service.bulk_action([], "remind")


class TestOfferQueries:
    @pytest.mark.asyncio
    async def test_list_with_status_filter(self, offer_service, issue, engineers) -> None:
        first = await issue([engineers[0].id])
        await issue([engineers[1].id])
        await offer_service.update_status(first.id, "withdrawn")

        offers, total = await offer_service.list_offers()
        assert total == 2
        withdrawn, withdrawn_total = await offer_service.list_offers(status="WITHDRAWN")
        assert withdrawn_total == 1
        assert withdrawn[0].id == first.id

    @pytest.mark.asyncio
    async def test_history_period_and_search(
        self, test_session, offer_service, issue, engineers
    ) -> None:
        recent = await issue([engineers[0].id], name="決済基盤開発")
        old = await issue([engineers[1].id], name="データ移行")
        old.sent_at = utcnow() - timedelta(days=60)
        await test_session.commit()

        _, default_total = await offer_service.get_offer_history()
        assert default_total == 2

        offers, total = await offer_service.get_offer_history(period="last_month")
        assert total == 1
        assert offers[0].id == recent.id

        found, found_total = await offer_service.get_offer_history(search="データ")
        assert found_total == 1
        assert found[0].id == old.id

        with pytest.raises(ValidationError):
            await offer_service.get_offer_history(period="forever")

    @pytest.mark.asyncio
    async def test_statistics(
        self, offer_service, received_service, issue, engineers
    ) -> None:
        empty = await offer_service.get_statistics()
        assert empty["total_offers"] == 0
        assert empty["acceptance_rate"] == 0
        assert empty["average_response_time"] == 0

        accepted = await issue([engineers[0].id])
        declined = await issue([engineers[1].id])
        await issue([engineers[2].id])
        await issue([engineers[2].id])
        await received_service.record_response(accepted.id, engineers[0].id, "ACCEPTED")
        await received_service.record_response(declined.id, engineers[1].id, "DECLINED")

        stats = await offer_service.get_statistics()
        assert stats["total_offers"] == 4
        assert stats["monthly_offers"] == 4
        assert stats["weekly_offers"] == 4
        assert stats["acceptance_rate"] == 25
        assert stats["decline_rate"] == 25
        assert stats["average_response_time"] == 0.0

    @pytest.mark.asyncio
    async def test_offer_board(
        self, offer_service, received_service, issue, engineers, partner
    ) -> None:
        offer = await issue([engineers[0].id])
        await received_service.record_response(offer.id, engineers[0].id, "PENDING")

        board = await offer_service.get_offer_board(partner)
        assert board["available_engineers"] == 3
        assert board["pending"] == 1
        assert board["accepted"] == 0

        statuses = {row["engineer"].id: row["offer_status"] for row in board["engineers"]}
        assert statuses[engineers[0].id] == OfferState.PENDING
        assert statuses[engineers[1].id] is None


class TestReceivedOffers:
    @pytest.mark.asyncio
    async def test_list_and_open(self, received_service, issue, engineers) -> None:
        offer = await issue([engineers[0].id, engineers[1].id])

        offers, total = await received_service.list_received()
        assert total == 1

        opened = await received_service.mark_opened(offer.id)
        first_opened_at = opened.opened_at
        assert opened.status == OfferState.OPENED
        assert first_opened_at is not None
        assert all(
            oe.individual_status == OfferEngineerState.OPENED
            for oe in opened.offer_engineers
        )

        again = await received_service.mark_opened(offer.id)
        assert again.opened_at == first_opened_at

    @pytest.mark.asyncio
    async def test_other_ses_company_cannot_see_offer(
        self, test_session, issue, engineers, other_ses_company
    ) -> None:
        offer = await issue([engineers[0].id])
        with pytest.raises(NotFoundError):
            await ReceivedOfferService(test_session, other_ses_company.id).get_received(
                offer.id
            )

    @pytest.mark.asyncio
    async def test_any_acceptance_accepts_the_offer(
        self, received_service, issue, engineers
    ) -> None:
        offer = await issue([engineers[0].id, engineers[1].id])

        answer = await received_service.record_response(
            offer.id, engineers[0].id, "declined", comment="日程が合わない"
        )
        assert answer.individual_status == OfferEngineerState.DECLINED
        assert answer.response_comment == "日程が合わない"
        assert answer.responded_at is not None
        assert offer.status == OfferState.SENT

        await received_service.record_response(offer.id, engineers[1].id, "accepted")
        assert offer.status == OfferState.ACCEPTED
        assert offer.responded_at is not None

    @pytest.mark.asyncio
    async def test_all_declined_declines_the_offer(
        self, received_service, issue, engineers
    ) -> None:
        offer = await issue([engineers[0].id, engineers[1].id])
        await received_service.record_response(offer.id, engineers[0].id, "DECLINED")
        await received_service.record_response(offer.id, engineers[1].id, "DECLINED")

        assert offer.status == OfferState.DECLINED

    @pytest.mark.asyncio
    async def test_pending_then_final_answer(
        self, received_service, issue, engineers
    ) -> None:
        offer = await issue([engineers[0].id])
        await received_service.mark_opened(offer.id)

        pending = await received_service.record_response(offer.id, engineers[0].id, "pending")
        assert pending.responded_at is None
        assert offer.status == OfferState.PENDING
        assert offer.responded_at is None

        await received_service.record_response(offer.id, engineers[0].id, "accepted")
        assert offer.status == OfferState.ACCEPTED

        with pytest.raises(BusinessLogicError) as exc_info:
            await received_service.record_response(offer.id, engineers[0].id, "pending")
        assert exc_info.value.details["current"] == "ACCEPTED"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", ["maybe", "WITHDRAWN", "EXPIRED"])
    async def test_invalid_responses(
        self, received_service, issue, engineers, response
    ) -> None:
        offer = await issue([engineers[0].id])
        with pytest.raises(ValidationError):
            await received_service.record_response(offer.id, engineers[0].id, response)

    @pytest.mark.asyncio
    async def test_response_errors(
        self, offer_service, received_service, issue, engineers
    ) -> None:
        offer = await issue([engineers[0].id])

        with pytest.raises(NotFoundError):
            await received_service.record_response(offer.id, engineers[2].id, "accepted")

        await offer_service.update_status(offer.id, "withdrawn")
        with pytest.raises(BusinessLogicError):
            await received_service.record_response(offer.id, engineers[0].id, "accepted")
