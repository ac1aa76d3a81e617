"""
API tests for business partners, their visibility rules and client users.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import TEST_PASSWORD, staff_headers
from seshub.core.clock import utcnow
from seshub.models.engineer import EngineerStatus

PARTNERS_URL = "/api/v1/business-partners"


@pytest.mark.asyncio
async def test_create_and_list(async_client: AsyncClient, admin_headers) -> None:
    response = await async_client.post(
        PARTNERS_URL,
        json={"client_company_name": " 株式会社ベータ ", "client_email_domain": "beta.jp"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    created = response.json()
    assert created["client_company"]["name"] == "株式会社ベータ"
    assert created["is_active"] is True
    assert created["url_token"]

    duplicate = await async_client.post(
        PARTNERS_URL, json={"client_company_name": "株式会社ベータ"}, headers=admin_headers
    )
    assert duplicate.status_code == 409

    listed = await async_client.get(PARTNERS_URL, headers=admin_headers)
    assert listed.json()["total"] == 1
    assert listed.json()["partners"][0]["id"] == created["id"]


@pytest.mark.asyncio
async def test_update_and_delete(async_client: AsyncClient, admin_headers, partner) -> None:
    url = f"{PARTNERS_URL}/{partner.id}"

    empty = await async_client.put(url, json={}, headers=admin_headers)
    assert empty.status_code == 400

    updated = await async_client.put(
        url, json={"access_url": "https://portal.example.jp/beta"}, headers=admin_headers
    )
    assert updated.json()["access_url"] == "https://portal.example.jp/beta"

    assert (await async_client.delete(url, headers=admin_headers)).status_code == 204
    missing = await async_client.get(url, headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["details"] == {"business_partner_id": str(partner.id)}


@pytest.mark.asyncio
async def test_access_permissions(
    async_client: AsyncClient, admin_headers, partner, engineer_factory, ses_company
) -> None:
    url = f"{PARTNERS_URL}/{partner.id}/access-permissions"
    engineer = await engineer_factory(ses_company, status=EngineerStatus.WORKING)

    default = await async_client.get(url, headers=admin_headers)
    assert default.json() == {
        "business_partner_id": str(partner.id),
        "permission_type": "FULL_ACCESS",
        "engineer_ids": [],
        "ng_engineer_ids": [],
    }

    selected = await async_client.put(
        url,
        json={"permission_type": "SELECTED_ONLY", "engineer_ids": [str(engineer.id)]},
        headers=admin_headers,
    )
    assert selected.status_code == 200
    assert selected.json()["engineer_ids"] == [str(engineer.id)]


@pytest.mark.asyncio
async def test_access_permissions_reject_foreign_engineers(
    async_client: AsyncClient, admin_headers, partner, engineer_factory, other_ses_company
) -> None:
    foreign = await engineer_factory(other_ses_company)
    response = await async_client.put(
        f"{PARTNERS_URL}/{partner.id}/access-permissions",
        json={"permission_type": "SELECTED_ONLY", "engineer_ids": [str(foreign.id)]},
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_ng_list(
    async_client: AsyncClient, admin_headers, partner, engineer_factory, ses_company
) -> None:
    engineer = await engineer_factory(ses_company)
    url = f"{PARTNERS_URL}/{partner.id}/ng-list"

    added = await async_client.post(
        url, json={"engineer_id": str(engineer.id), "reason": "過去トラブル"}, headers=admin_headers
    )
    assert added.status_code == 201
    assert added.json()["engineer"]["id"] == str(engineer.id)

    again = await async_client.post(
        url, json={"engineer_id": str(engineer.id)}, headers=admin_headers
    )
    assert again.status_code == 422

    listed = await async_client.get(url, headers=admin_headers)
    assert [item["reason"] for item in listed.json()] == ["過去トラブル"]

    removed = await async_client.delete(f"{url}/{engineer.id}", headers=admin_headers)
    assert removed.status_code == 204
    assert (await async_client.get(url, headers=admin_headers)).json() == []


@pytest.mark.asyncio
async def test_client_users(async_client: AsyncClient, admin_headers, partner) -> None:
    url = f"{PARTNERS_URL}/{partner.id}/client-users"
    payload = {
        "email": "PM@client-corp.jp",
        "password": TEST_PASSWORD,
        "name": "取引先 次郎",
        "department": "情報システム部",
        "role_name": "client_pm",
    }

    created = await async_client.post(url, json=payload, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["email"] == "pm@client-corp.jp"
    assert created.json()["business_partner_id"] == str(partner.id)

    staff_role = await async_client.post(
        url,
        json={**payload, "email": "other@client-corp.jp", "role_name": "admin"},
        headers=admin_headers,
    )
    assert staff_role.status_code == 400

    duplicate = await async_client.post(url, json=payload, headers=admin_headers)
    assert duplicate.status_code == 409

    listed = await async_client.get(url, headers=admin_headers)
    assert [user["name"] for user in listed.json()] == ["取引先 次郎"]


@pytest.mark.asyncio
async def test_unlock_client_user(
    async_client: AsyncClient,
    test_session: AsyncSession,
    admin_headers,
    partner,
    client_user,
) -> None:
    client_user.failed_login_count = 12
    client_user.account_locked_until = utcnow()
    await test_session.commit()

    response = await async_client.post(
        f"{PARTNERS_URL}/{partner.id}/client-users/{client_user.id}/unlock",
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["failed_login_count"] == 0
    assert response.json()["account_locked_until"] is None


@pytest.mark.asyncio
async def test_sales_cannot_manage_visibility(
    async_client: AsyncClient, sales_headers, partner
) -> None:
    listed = await async_client.get(PARTNERS_URL, headers=sales_headers)
    assert listed.status_code == 200

    response = await async_client.get(
        f"{PARTNERS_URL}/{partner.id}/access-permissions", headers=sales_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_other_company_cannot_see_partner(
    async_client: AsyncClient, partner, other_ses_company, user_factory
) -> None:
    rival = await user_factory(other_ses_company, "admin")
    response = await async_client.get(
        f"{PARTNERS_URL}/{partner.id}", headers=staff_headers(rival)
    )
    assert response.status_code == 404
