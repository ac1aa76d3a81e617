"""
API tests for staff users, the own-company profile and the permission catalog.
"""

import pytest
from httpx import AsyncClient

from conftest import TEST_PASSWORD, staff_headers


class TestUsers:
    @pytest.mark.asyncio
    async def test_list_with_roles(
        self, async_client: AsyncClient, admin_headers, sales_user, other_ses_company, user_factory
    ) -> None:
        await user_factory(other_ses_company, "admin")

        response = await async_client.get("/api/v1/users", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        roles = {user["email"]: user["roles"] for user in data["users"]}
        assert roles == {"admin@acme-ses.jp": ["admin"], "sales@acme-ses.jp": ["sales"]}

    @pytest.mark.asyncio
    async def test_create_user(self, async_client: AsyncClient, admin_headers) -> None:
        payload = {
            "email": "New.Member@acme-ses.jp",
            "name": "新規 メンバー",
            "password": TEST_PASSWORD,
            "phone": "03-1234-5678",
        }
        created = await async_client.post("/api/v1/users", json=payload, headers=admin_headers)

        assert created.status_code == 201
        assert created.json()["email"] == "new.member@acme-ses.jp"
        assert created.json()["phone"] == "0312345678"
        assert created.json()["roles"] == ["sales"]

        duplicate = await async_client.post("/api/v1/users", json=payload, headers=admin_headers)
        assert duplicate.status_code == 409

    @pytest.mark.asyncio
    async def test_create_user_rejections(self, async_client: AsyncClient, admin_headers) -> None:
        unknown_role = await async_client.post(
            "/api/v1/users",
            json={
                "email": "a@acme-ses.jp",
                "name": "A",
                "password": TEST_PASSWORD,
                "roles": ["owner"],
            },
            headers=admin_headers,
        )
        assert unknown_role.status_code == 404
        assert unknown_role.json()["details"] == {"role": "owner"}

        weak = await async_client.post(
            "/api/v1/users",
            json={"email": "b@acme-ses.jp", "name": "B", "password": "onlyletters"},
            headers=admin_headers,
        )
        assert weak.status_code == 400
        assert weak.json()["detail"] == "Password must contain at least one digit"

    @pytest.mark.asyncio
    async def test_assign_and_revoke_role(
        self, async_client: AsyncClient, admin_user, admin_headers, sales_user
    ) -> None:
        url = f"/api/v1/users/{sales_user.id}/roles"

        assigned = await async_client.post(
            url, json={"role_name": "manager"}, headers=admin_headers
        )
        assert assigned.json() == ["manager", "sales"]

        again = await async_client.post(url, json={"role_name": "manager"}, headers=admin_headers)
        assert again.status_code == 409

        revoked = await async_client.delete(f"{url}/manager", headers=admin_headers)
        assert revoked.json() == ["sales"]

        missing = await async_client.delete(f"{url}/manager", headers=admin_headers)
        assert missing.status_code == 404

        own_admin = await async_client.delete(
            f"/api/v1/users/{admin_user.id}/roles/admin", headers=admin_headers
        )
        assert own_admin.status_code == 400

    @pytest.mark.asyncio
    async def test_sales_cannot_manage_roles(
        self, async_client: AsyncClient, admin_user, sales_headers
    ) -> None:
        response = await async_client.post(
            f"/api/v1/users/{admin_user.id}/roles",
            json={"role_name": "sales"},
            headers=sales_headers,
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_deactivate(
        self, async_client: AsyncClient, admin_user, admin_headers, sales_user
    ) -> None:
        own = await async_client.post(
            f"/api/v1/users/{admin_user.id}/deactivate", headers=admin_headers
        )
        assert own.status_code == 400

        response = await async_client.post(
            f"/api/v1/users/{sales_user.id}/deactivate", headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False

    @pytest.mark.asyncio
    async def test_other_company_user_is_not_found(
        self, async_client: AsyncClient, admin_headers, other_ses_company, user_factory
    ) -> None:
        rival = await user_factory(other_ses_company, "sales")
        response = await async_client.post(
            f"/api/v1/users/{rival.id}/roles", json={"role_name": "manager"}, headers=admin_headers
        )
        assert response.status_code == 404


class TestOwnCompany:
    @pytest.mark.asyncio
    async def test_view_and_update(
        self, async_client: AsyncClient, admin_headers, ses_company
    ) -> None:
        fetched = await async_client.get("/api/v1/companies/me", headers=admin_headers)
        assert fetched.json()["id"] == str(ses_company.id)
        assert fetched.json()["company_type"] == "SES"

        updated = await async_client.put(
            "/api/v1/companies/me",
            json={"address": "東京都渋谷区1-2-3", "max_engineers": 80},
            headers=admin_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["address"] == "東京都渋谷区1-2-3"
        assert updated.json()["max_engineers"] == 80
        assert updated.json()["name"] == ses_company.name

        empty = await async_client.put("/api/v1/companies/me", json={}, headers=admin_headers)
        assert empty.status_code == 400

    @pytest.mark.asyncio
    async def test_sales_cannot_update(self, async_client: AsyncClient, sales_headers) -> None:
        viewed = await async_client.get("/api/v1/companies/me", headers=sales_headers)
        assert viewed.status_code == 403

        response = await async_client.put(
            "/api/v1/companies/me", json={"address": "大阪"}, headers=sales_headers
        )
        assert response.status_code == 403


class TestPermissionsApi:
    @pytest.mark.asyncio
    async def test_catalog(self, async_client: AsyncClient, sales_headers) -> None:
        response = await async_client.get(
            "/api/v1/permissions", params={"resource": "offer"}, headers=sales_headers
        )

        assert response.status_code == 200
        names = {p["name"] for p in response.json()}
        assert {"offer:create", "offer:respond", "offer:view:company"} <= names
        assert all(p["resource"] == "offer" for p in response.json())

    @pytest.mark.asyncio
    async def test_roles(self, async_client: AsyncClient, admin_headers) -> None:
        response = await async_client.get("/api/v1/permissions/roles", headers=admin_headers)

        roles = {role["name"]: role for role in response.json()}
        assert len(roles) == 11
        assert roles["client_pm"]["permissions"] == sorted(
            [
                "user:view:own",
                "user:update:own",
                "engineer:view:allowed",
                "skillsheet:view:allowed",
            ]
        )
        assert roles["admin"]["is_system"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("path", "can_access", "required"),
        [
            ("/engineers/list", True, ["engineer:view:company"]),
            ("/engineers/register", False, ["engineer:create"]),
            ("/business-partners/42/access-control", False, ["partner:manage"]),
            ("/dashboard", True, []),
        ],
    )
    async def test_check_route(
        self, async_client: AsyncClient, sales_headers, path, can_access, required
    ) -> None:
        response = await async_client.post(
            "/api/v1/permissions/check-route", json={"path": path}, headers=sales_headers
        )

        data = response.json()
        assert data["can_access"] is can_access
        assert [p["name"] for p in data["required_permissions"]] == required

    @pytest.mark.asyncio
    async def test_client_principal_can_read_catalog(
        self, async_client: AsyncClient, client_headers
    ) -> None:
        response = await async_client.post(
            "/api/v1/permissions/check-route",
            json={"path": "/engineers/list"},
            headers=client_headers,
        )
        assert response.json()["can_access"] is False

    @pytest.mark.asyncio
    async def test_rival_company_admin_sees_own_roles(
        self, async_client: AsyncClient, other_ses_company, seeded_rbac, user_factory
    ) -> None:
        rival = await user_factory(other_ses_company, "manager")
        response = await async_client.get(
            "/api/v1/auth/me/permissions", headers=staff_headers(rival)
        )
        assert response.json()["roles"] == ["manager"]
        assert "engineer:delete" not in response.json()["permissions"]
