"""
Tests for drafting, sending and tracking approaches.
"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from seshub.core.clock import utcnow
from seshub.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    NotFoundError,
    ValidationError,
)
from seshub.models.approach import ApproachStatus, ApproachType
from seshub.models.company import Company, CompanyType
from seshub.services.approach import ApproachService


@pytest.fixture
def sender(test_session: AsyncSession, ses_company) -> ApproachService:
    return ApproachService(test_session, ses_company.id)


@pytest.fixture
def target_service(test_session: AsyncSession, other_ses_company) -> ApproachService:
    return ApproachService(test_session, other_ses_company.id)


def company_approach(target: Company, **fields):
    data = {
        "approach_type": ApproachType.COMPANY,
        "to_company_id": target.id,
        "subject": "Javaエンジニアのご紹介",
        "message_content": "弊社エンジニアをご紹介いたします。",
    }
    data.update(fields)
    return data


class TestCreateAndSend:
    async def test_draft_then_send(self, sender, other_ses_company) -> None:
        author = uuid.uuid4()
        draft = await sender.create_draft(author, **company_approach(other_ses_company))

        assert draft.status == ApproachStatus.DRAFT
        assert draft.sent_at is None
        assert draft.target_name == "株式会社ライバルSES"
        assert draft.engineer_ids == []

        sent = await sender.send(draft.id, author)
        assert sent.status == ApproachStatus.SENT
        assert sent.sent_at is not None
        assert sent.sent_by == author

    async def test_approach_is_sent_once(self, sender, other_ses_company) -> None:
        approach = await sender.send_approach(
            uuid.uuid4(), **company_approach(other_ses_company)
        )

        with pytest.raises(BusinessLogicError) as exc_info:
            await sender.send(approach.id, uuid.uuid4())
        assert exc_info.value.details == {"status": "SENT"}

    async def test_engineers_must_belong_to_sender(
        self, sender, ses_company, other_ses_company, engineer_factory
    ) -> None:
        own = await engineer_factory(ses_company, "佐藤", "一郎")
        foreign = await engineer_factory(other_ses_company, "田中", "花子")

        with pytest.raises(ValidationError) as exc_info:
            await sender.create_draft(
                uuid.uuid4(),
                **company_approach(other_ses_company, engineer_ids=[own.id, foreign.id]),
            )
        assert exc_info.value.field == "engineer_ids"
        assert exc_info.value.details == {"engineer_ids": [str(foreign.id)]}

        approach = await sender.create_draft(
            uuid.uuid4(),
            **company_approach(other_ses_company, engineer_ids=[own.id, own.id]),
        )
        assert approach.engineer_ids == [str(own.id)]

    async def test_company_target_is_required(self, sender) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await sender.create_draft(
                uuid.uuid4(),
                approach_type=ApproachType.COMPANY,
                subject="ご紹介",
                message_content="本文",
            )
        assert exc_info.value.field == "to_company_id"

    async def test_cannot_target_own_or_unknown_company(
        self, sender, ses_company, test_session
    ) -> None:
        with pytest.raises(ValidationError):
            await sender.create_draft(uuid.uuid4(), **company_approach(ses_company))

        closed = Company(
            name="株式会社休眠", company_type=CompanyType.CLIENT, is_active=False
        )
        test_session.add(closed)
        await test_session.commit()
        with pytest.raises(ValidationError) as exc_info:
            await sender.create_draft(uuid.uuid4(), **company_approach(closed))
        assert exc_info.value.details == {"to_company_id": str(closed.id)}

    async def test_freelance_needs_recipient_email(self, sender) -> None:
        fields = {
            "approach_type": ApproachType.FREELANCE,
            "target_name": "山本 健",
            "subject": "案件のご案内",
            "message_content": "ご興味があればご連絡ください。",
        }
        with pytest.raises(ValidationError) as exc_info:
            await sender.create_draft(uuid.uuid4(), **fields)
        assert exc_info.value.field == "recipient_email"

        approach = await sender.send_approach(
            uuid.uuid4(), recipient_email="ken@freelance.example.jp", **fields
        )
        assert approach.to_company_id is None
        assert approach.target_name == "山本 健"
        assert approach.status == ApproachStatus.SENT

    async def test_blank_subject_is_rejected(self, sender, other_ses_company) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await sender.create_draft(
                uuid.uuid4(), **company_approach(other_ses_company, subject="  ")
            )
        assert exc_info.value.field == "subject"


class TestVisibility:
    async def test_target_sees_sent_approaches_only(
        self, sender, target_service, other_ses_company
    ) -> None:
        draft = await sender.create_draft(uuid.uuid4(), **company_approach(other_ses_company))
        sent = await sender.send_approach(uuid.uuid4(), **company_approach(other_ses_company))

        received, total = await target_service.list_received()
        assert total == 1
        assert [a.id for a in received] == [sent.id]

        assert (await target_service.get_approach(sent.id)).id == sent.id
        with pytest.raises(NotFoundError):
            await target_service.get_approach(draft.id)

    async def test_only_sender_changes_an_approach(
        self, sender, target_service, other_ses_company
    ) -> None:
        sent = await sender.send_approach(uuid.uuid4(), **company_approach(other_ses_company))

        with pytest.raises(AuthorizationError):
            await target_service.update_status(sent.id, ApproachStatus.REPLIED)
        with pytest.raises(AuthorizationError):
            await target_service.delete_approach(sent.id)

        updated = await sender.update_status(sent.id, ApproachStatus.REPLIED)
        assert updated.status == ApproachStatus.REPLIED

    async def test_unrelated_company_gets_not_found(
        self, sender, other_ses_company, test_session
    ) -> None:
        sent = await sender.send_approach(uuid.uuid4(), **company_approach(other_ses_company))
        outsider = Company(name="株式会社無関係", company_type=CompanyType.SES, is_active=True)
        test_session.add(outsider)
        await test_session.commit()

        with pytest.raises(NotFoundError):
            await ApproachService(test_session, outsider.id).update_status(
                sent.id, ApproachStatus.OPENED
            )

    async def test_deleted_approach_disappears(self, sender, other_ses_company) -> None:
        sent = await sender.send_approach(uuid.uuid4(), **company_approach(other_ses_company))
        await sender.delete_approach(sent.id)

        _, total = await sender.list_sent()
        assert total == 0
        with pytest.raises(NotFoundError):
            await sender.get_approach(sent.id)


class TestStatusAndHistory:
    async def test_draft_status_cannot_be_updated(self, sender, other_ses_company) -> None:
        draft = await sender.create_draft(uuid.uuid4(), **company_approach(other_ses_company))

        with pytest.raises(BusinessLogicError):
            await sender.update_status(draft.id, ApproachStatus.OPENED)

    async def test_sent_approach_cannot_return_to_draft(
        self, sender, other_ses_company
    ) -> None:
        sent = await sender.send_approach(uuid.uuid4(), **company_approach(other_ses_company))

        with pytest.raises(ValidationError):
            await sender.update_status(sent.id, ApproachStatus.DRAFT)

    async def test_history_filters(
        self, sender, other_ses_company, test_session
    ) -> None:
        old = await sender.send_approach(uuid.uuid4(), **company_approach(other_ses_company))
        old.sent_at = utcnow() - timedelta(days=60)
        await test_session.commit()
        recent = await sender.send_approach(
            uuid.uuid4(), **company_approach(other_ses_company, subject="再送")
        )
        await sender.update_status(recent.id, ApproachStatus.OPENED)
        draft = await sender.create_draft(uuid.uuid4(), **company_approach(other_ses_company))

        approaches, total = await sender.list_sent()
        assert total == 3
        assert [a.id for a in approaches] == [recent.id, old.id, draft.id]

        opened, _ = await sender.list_sent(status=ApproachStatus.OPENED)
        assert [a.id for a in opened] == [recent.id]

        since, _ = await sender.list_sent(sent_from=utcnow() - timedelta(days=30))
        assert [a.id for a in since] == [recent.id]

        freelance, total = await sender.list_sent(approach_type=ApproachType.FREELANCE)
        assert (freelance, total) == ([], 0)

    async def test_statistics(self, sender, other_ses_company, test_session) -> None:
        empty = await sender.get_statistics()
        assert empty["total"] == 0
        assert empty["open_rate"] == 0.0

        approaches = [
            await sender.send_approach(uuid.uuid4(), **company_approach(other_ses_company))
            for _ in range(3)
        ]
        await sender.update_status(approaches[0].id, ApproachStatus.OPENED)
        await sender.update_status(approaches[1].id, ApproachStatus.REPLIED)
        approaches[2].sent_at = utcnow() - timedelta(days=45)
        await test_session.commit()
        await sender.create_draft(uuid.uuid4(), **company_approach(other_ses_company))

        assert await sender.get_statistics() == {
            "total": 3,
            "last_30_days": 2,
            "opened": 1,
            "replied": 1,
            "open_rate": 33.3,
            "reply_rate": 33.3,
        }
