"""
API tests for offers: sent by client users, answered by the SES company.
"""

import uuid
from datetime import UTC, datetime

import pytest
from httpx import AsyncClient

from conftest import staff_headers
from seshub.models.engineer import EngineerStatus

CLIENT_OFFERS_URL = "/api/v1/client/offers"
RECEIVED_URL = "/api/v1/offers/received"


def offer_payload(*engineers, **details):
    project = {
        "name": "ECサイト開発",
        "period_start": "2026-04-01",
        "period_end": "2026-09-30",
        "required_skills": ["Python", "FastAPI"],
        "description": "バックエンドAPIの設計と実装",
        "rate_min": 600000,
        "rate_max": 800000,
    }
    project.update(details)
    return {
        "engineer_ids": [str(engineer.id) for engineer in engineers],
        "project_details": project,
    }


@pytest.fixture
async def engineers(engineer_factory, ses_company):
    return [
        await engineer_factory(ses_company, "佐藤", "一郎", skills=["Python"]),
        await engineer_factory(ses_company, "鈴木", "二郎", EngineerStatus.WAITING, skills=[]),
    ]


@pytest.fixture
async def sent_offer(async_client: AsyncClient, client_headers, engineers):
    response = await async_client.post(
        CLIENT_OFFERS_URL, json=offer_payload(*engineers), headers=client_headers
    )
    assert response.status_code == 201
    return response.json()


class TestClientOffers:
    @pytest.mark.asyncio
    async def test_create(self, sent_offer, partner, client_user) -> None:
        assert sent_offer["offer_number"] == f"OFF-{datetime.now(UTC).year}-001"
        assert sent_offer["status"] == "SENT"
        assert sent_offer["company_id"] == str(partner.client_company_id)
        assert sent_offer["ses_company_id"] == str(partner.company_id)
        assert sent_offer["created_by"] == str(client_user.id)
        assert {oe["individual_status"] for oe in sent_offer["offer_engineers"]} == {"SENT"}
        assert len(sent_offer["offer_engineers"]) == 2

    @pytest.mark.asyncio
    async def test_create_reports_every_problem(
        self, async_client: AsyncClient, client_headers, engineers
    ) -> None:
        response = await async_client.post(
            CLIENT_OFFERS_URL,
            json=offer_payload(
                engineers[0], name=" ", required_skills=[], rate_min=900000
            ),
            headers=client_headers,
        )

        assert response.status_code == 422
        assert response.json()["details"]["errors"] == [
            "Project name is required",
            "At least one required skill must be specified",
            "Minimum rate must not exceed the maximum rate",
        ]

    @pytest.mark.asyncio
    async def test_create_for_hidden_engineer(
        self, async_client: AsyncClient, client_headers, engineer_factory, other_ses_company
    ) -> None:
        foreign = await engineer_factory(other_ses_company)
        response = await async_client.post(
            CLIENT_OFFERS_URL, json=offer_payload(foreign), headers=client_headers
        )

        assert response.status_code == 403
        assert response.json()["details"] == {"engineer_ids": [str(foreign.id)]}

    @pytest.mark.asyncio
    async def test_list_history_and_statistics(
        self, async_client: AsyncClient, client_headers, sent_offer
    ) -> None:
        listed = await async_client.get(CLIENT_OFFERS_URL, headers=client_headers)
        assert listed.json()["total"] == 1

        filtered = await async_client.get(
            CLIENT_OFFERS_URL, params={"status": "accepted"}, headers=client_headers
        )
        assert filtered.json()["total"] == 0

        history = await async_client.get(
            f"{CLIENT_OFFERS_URL}/history",
            params={"period": "last_week", "search": "EC"},
            headers=client_headers,
        )
        assert [o["id"] for o in history.json()["offers"]] == [sent_offer["id"]]

        bad_period = await async_client.get(
            f"{CLIENT_OFFERS_URL}/history", params={"period": "forever"}, headers=client_headers
        )
        assert bad_period.status_code == 422

        stats = await async_client.get(f"{CLIENT_OFFERS_URL}/statistics", headers=client_headers)
        assert stats.json() == {
            "total_offers": 1,
            "monthly_offers": 1,
            "weekly_offers": 1,
            "today_offers": 1,
            "acceptance_rate": 0,
            "decline_rate": 0,
            "average_response_time": 0.0,
        }

    @pytest.mark.asyncio
    async def test_board(
        self, async_client: AsyncClient, client_headers, sent_offer, engineers
    ) -> None:
        response = await async_client.get(f"{CLIENT_OFFERS_URL}/board", headers=client_headers)

        assert response.status_code == 200
        board = response.json()
        assert board["available_engineers"] == 2
        assert board["permission_type"] == "FULL_ACCESS"
        assert {item["offer_status"] for item in board["engineers"]} == {"SENT"}

    @pytest.mark.asyncio
    async def test_remind_and_withdraw(
        self, async_client: AsyncClient, client_headers, sent_offer
    ) -> None:
        url = f"{CLIENT_OFFERS_URL}/{sent_offer['id']}"

        reminded = await async_client.post(f"{url}/remind", headers=client_headers)
        assert reminded.json()["reminder_count"] == 1

        resent = await async_client.put(
            f"{url}/status", json={"status": "reminder_sent"}, headers=client_headers
        )
        assert resent.json()["reminder_count"] == 2

        invalid = await async_client.put(
            f"{url}/status", json={"status": "accepted"}, headers=client_headers
        )
        assert invalid.status_code == 422

        withdrawn = await async_client.put(
            f"{url}/status", json={"status": "withdrawn"}, headers=client_headers
        )
        assert withdrawn.json()["status"] == "WITHDRAWN"

        again = await async_client.post(f"{url}/remind", headers=client_headers)
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_bulk_action(
        self, async_client: AsyncClient, client_headers, engineers, sent_offer
    ) -> None:
        second = await async_client.post(
            CLIENT_OFFERS_URL, json=offer_payload(engineers[1]), headers=client_headers
        )
        assert second.json()["offer_number"].endswith("-002")

        response = await async_client.post(
            f"{CLIENT_OFFERS_URL}/bulk-action",
            json={
                "offer_ids": [sent_offer["id"], second.json()["id"], str(uuid.uuid4())],
                "action": "withdraw",
            },
            headers=client_headers,
        )
        assert response.json() == {"success": 2, "failed": 1}

        unknown = await async_client.post(
            f"{CLIENT_OFFERS_URL}/bulk-action",
            json={"offer_ids": [sent_offer["id"]], "action": "archive"},
            headers=client_headers,
        )
        assert unknown.status_code == 422

    @pytest.mark.asyncio
    async def test_staff_token_is_rejected(
        self, async_client: AsyncClient, admin_headers
    ) -> None:
        response = await async_client.get(CLIENT_OFFERS_URL, headers=admin_headers)
        assert response.status_code == 403


class TestReceivedOffers:
    @pytest.mark.asyncio
    async def test_open_and_respond(
        self,
        async_client: AsyncClient,
        admin_headers,
        client_headers,
        sent_offer,
        engineers,
    ) -> None:
        listed = await async_client.get(RECEIVED_URL, headers=admin_headers)
        assert [o["id"] for o in listed.json()["offers"]] == [sent_offer["id"]]

        url = f"{RECEIVED_URL}/{sent_offer['id']}"
        opened = await async_client.post(f"{url}/open", headers=admin_headers)
        assert opened.json()["status"] == "OPENED"
        assert opened.json()["opened_at"] is not None
        assert {oe["engineer"]["last_name"] for oe in opened.json()["offer_engineers"]} == {
            "佐藤",
            "鈴木",
        }
        assert {oe["individual_status"] for oe in opened.json()["offer_engineers"]} == {"OPENED"}

        declined = await async_client.post(
            f"{url}/engineers/{engineers[0].id}/response",
            json={"response": "declined", "comment": "稼働中のため"},
            headers=admin_headers,
        )
        assert declined.status_code == 200
        assert declined.json()["individual_status"] == "DECLINED"
        assert declined.json()["response_comment"] == "稼働中のため"

        accepted = await async_client.post(
            f"{url}/engineers/{engineers[1].id}/response",
            json={"response": "ACCEPTED"},
            headers=admin_headers,
        )
        assert accepted.json()["responded_at"] is not None

        as_client = await async_client.get(
            f"{CLIENT_OFFERS_URL}/{sent_offer['id']}", headers=client_headers
        )
        assert as_client.json()["status"] == "ACCEPTED"
        assert as_client.json()["responded_at"] is not None

        changed_mind = await async_client.post(
            f"{url}/engineers/{engineers[1].id}/response",
            json={"response": "DECLINED"},
            headers=admin_headers,
        )
        assert changed_mind.status_code == 400
        assert changed_mind.json()["details"]["current"] == "ACCEPTED"

        resent = await async_client.put(
            f"{CLIENT_OFFERS_URL}/{sent_offer['id']}/status",
            json={"status": "reminder_sent"},
            headers=client_headers,
        )
        assert resent.status_code == 400
        assert resent.json()["details"] == {"status": "ACCEPTED"}

    @pytest.mark.asyncio
    async def test_invalid_response(
        self, async_client: AsyncClient, admin_headers, sent_offer, engineers
    ) -> None:
        response = await async_client.post(
            f"{RECEIVED_URL}/{sent_offer['id']}/engineers/{engineers[0].id}/response",
            json={"response": "WITHDRAWN"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_withdrawn_offer_cannot_be_answered(
        self, async_client: AsyncClient, admin_headers, client_headers, sent_offer, engineers
    ) -> None:
        await async_client.put(
            f"{CLIENT_OFFERS_URL}/{sent_offer['id']}/status",
            json={"status": "withdrawn"},
            headers=client_headers,
        )
        response = await async_client.post(
            f"{RECEIVED_URL}/{sent_offer['id']}/engineers/{engineers[0].id}/response",
            json={"response": "ACCEPTED"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Offer has been withdrawn"

    @pytest.mark.asyncio
    async def test_other_ses_company_cannot_see_offer(
        self, async_client: AsyncClient, sent_offer, other_ses_company, user_factory
    ) -> None:
        rival = await user_factory(other_ses_company, "admin")
        response = await async_client.get(
            f"{RECEIVED_URL}/{sent_offer['id']}", headers=staff_headers(rival)
        )
        assert response.status_code == 404
