"""
Tests for the permission catalog and permission evaluation helpers.
"""

import pytest

from seshub.services.permission_catalog import (
    PERMISSION_NAMES,
    PERMISSIONS_BY_NAME,
    ROLES,
    ROLES_BY_NAME,
    can_register_engineer,
    get_highest_role,
)
from seshub.services.permission_check import (
    PermissionChecker,
    build_permission_name,
    has_all_permissions,
    has_any_permission,
    has_permission,
)


class TestCatalog:
    def test_every_role_grants_only_catalog_permissions(self) -> None:
        for role in ROLES:
            unknown = set(role.permissions) - set(PERMISSION_NAMES)
            assert not unknown, f"{role.name} grants unknown permissions {unknown}"

    def test_permission_names_are_unique(self) -> None:
        assert len(PERMISSION_NAMES) == len(set(PERMISSION_NAMES))

    def test_permission_parts(self) -> None:
        scoped = PERMISSIONS_BY_NAME["engineer:view:company"]
        assert (scoped.resource, scoped.action, scoped.scope) == (
            "engineer",
            "view",
            "company",
        )
        unscoped = PERMISSIONS_BY_NAME["engineer:create"]
        assert unscoped.scope is None

    def test_client_roles_cannot_manage_staff_data(self) -> None:
        for name in ("client_admin", "client_sales", "client_pm"):
            granted = set(ROLES_BY_NAME[name].permissions)
            assert "engineer:view:allowed" in granted
            assert "engineer:view:company" not in granted
            assert not any(p.startswith("partner:") for p in granted)

    def test_admin_manages_partners(self) -> None:
        assert "partner:manage" in ROLES_BY_NAME["admin"].permissions
        assert "partner:manage" not in ROLES_BY_NAME["sales"].permissions

    def test_super_admin_holds_every_permission(self) -> None:
        assert set(ROLES_BY_NAME["super_admin"].permissions) == set(PERMISSION_NAMES)


class TestRoleHelpers:
    def test_highest_role(self) -> None:
        assert get_highest_role(["engineer", "sales", "admin"]) == "admin"
        assert get_highest_role(["client_pm", "client_admin"]) == "client_admin"
        assert get_highest_role([]) is None
        assert get_highest_role(None) is None

    def test_highest_role_keeps_first_on_ties(self) -> None:
        assert get_highest_role(["営業", "sales"]) == "営業"

    @pytest.mark.parametrize(
        ("roles", "expected"),
        [
            ("admin", True),
            (["engineer", "営業"], True),
            ([{"name": "管理者"}], True),
            (["engineer"], False),
            (None, False),
        ],
    )
    def test_can_register_engineer(self, roles, expected) -> None:
        assert can_register_engineer(roles) is expected


class TestPermissionFunctions:
    def test_build_permission_name(self) -> None:
        assert build_permission_name("offer", "view", "company") == "offer:view:company"
        assert build_permission_name("offer", "create") == "offer:create"

    def test_exact_match_only(self) -> None:
        granted = ["engineer:view:company"]
        assert has_permission(granted, "engineer", "view", "company")
        assert not has_permission(granted, "engineer", "view", "all")
        assert not has_permission(granted, "engineer", "view")

    def test_any_and_all(self) -> None:
        granted = ["offer:respond", "offer:view:company"]
        assert has_any_permission(granted, [("offer", "create"), ("offer", "respond")])
        assert not has_any_permission(granted, [("offer", "create")])
        assert has_all_permissions(
            granted, [("offer", "respond"), ("offer", "view", "company")]
        )
        assert not has_all_permissions(granted, [("offer", "respond"), ("offer", "create")])


class TestPermissionChecker:
    @pytest.fixture
    def sales_checker(self) -> PermissionChecker:
        return PermissionChecker(ROLES_BY_NAME["sales"].permissions, ["sales"])

    def test_resource_helpers_default_to_company_scope(self, sales_checker) -> None:
        assert sales_checker.can_view_engineer()
        assert not sales_checker.can_view_engineer("all")
        assert sales_checker.can_view_partner()
        assert not sales_checker.can_create_engineer()
        assert not sales_checker.can_manage_partner()

    def test_company_helpers_default_to_own_scope(self) -> None:
        checker = PermissionChecker(["company:view:own"])
        assert checker.can_view_company()
        assert not checker.can_edit_company()

    def test_role_helpers(self, sales_checker) -> None:
        assert sales_checker.is_sales()
        assert not sales_checker.is_admin()
        assert PermissionChecker(roles=["管理者"]).is_admin()
        assert PermissionChecker(roles=["client_admin"]).is_client_admin()

    def test_empty_checker_denies_everything(self) -> None:
        checker = PermissionChecker()
        assert not checker.can_view_offer()
        assert not checker.has_role("admin")
