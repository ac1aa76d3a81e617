"""
Tests for the role and permission dependency factories.
"""

import uuid

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from seshub.api.dependencies import (
    get_current_principal,
    get_current_staff,
    require_admin,
    require_any_permission,
    require_client_user,
    require_manager,
    require_permission,
    require_sales,
)
from seshub.core.auth import Principal


def make_principal(*roles: str, permissions=(), user_type: str = "ses") -> Principal:
    return Principal(
        id=uuid.uuid4(),
        user_type=user_type,
        company_id=uuid.uuid4(),
        email="someone@acme-ses.jp",
        name="Someone",
        roles=list(roles),
        permissions=list(permissions),
    )


def guarded_app() -> FastAPI:
    app = FastAPI()

    @app.get("/admin", dependencies=[Depends(require_admin)])
    async def admin_only() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/manager", dependencies=[Depends(require_manager)])
    async def manager_only() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/sales", dependencies=[Depends(require_sales)])
    async def sales_only() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/export", dependencies=[Depends(require_permission("engineer", "export"))])
    async def export() -> dict[str, bool]:
        return {"ok": True}

    @app.get(
        "/offers",
        dependencies=[
            Depends(require_any_permission(("offer", "create"), ("offer", "respond")))
        ],
    )
    async def offers() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/staff", dependencies=[Depends(get_current_staff)])
    async def staff() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/client", dependencies=[Depends(require_client_user)])
    async def client() -> dict[str, bool]:
        return {"ok": True}

    return app


async def statuses(principal: Principal, *paths: str) -> list[int]:
    app = guarded_app()
    app.dependency_overrides[get_current_principal] = lambda: principal
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        return [(await client.get(path)).status_code for path in paths]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("roles", "expected"),
    [
        (("admin",), [200, 200, 200]),
        (("manager",), [403, 200, 200]),
        (("sales",), [403, 403, 200]),
        (("engineer",), [403, 403, 403]),
        (("engineer", "manager"), [403, 200, 200]),
    ],
)
async def test_role_dependencies(roles, expected) -> None:
    assert await statuses(make_principal(*roles), "/admin", "/manager", "/sales") == expected


@pytest.mark.asyncio
async def test_permission_dependencies() -> None:
    exporter = make_principal("admin", permissions=["engineer:export", "offer:respond"])
    assert await statuses(exporter, "/export", "/offers") == [200, 200]

    viewer = make_principal("sales", permissions=["engineer:view:company"])
    assert await statuses(viewer, "/export", "/offers") == [403, 403]


@pytest.mark.asyncio
async def test_user_type_dependencies() -> None:
    staff = make_principal("admin")
    client = make_principal("client_admin", user_type="client")

    assert await statuses(staff, "/staff", "/client") == [200, 403]
    assert await statuses(client, "/staff", "/client") == [403, 200]
