"""Permission evaluation helpers over ``resource:action[:scope]`` names."""

from __future__ import annotations

from collections.abc import Iterable

PermissionTriple = tuple[str, str, str | None]


def build_permission_name(resource: str, action: str, scope: str | None = None) -> str:
    if scope:
        return f"{resource}:{action}:{scope}"
    return f"{resource}:{action}"


def has_permission(
    permissions: Iterable[str],
    resource: str,
    action: str,
    scope: str | None = None,
) -> bool:
    """Exact membership check; no wildcard or scope widening."""
    return build_permission_name(resource, action, scope) in set(permissions)


def _normalize(triple: tuple[str, ...]) -> PermissionTriple:
    resource, action = triple[0], triple[1]
    scope = triple[2] if len(triple) > 2 else None
    return resource, action, scope


def has_any_permission(
    permissions: Iterable[str], required: Iterable[tuple[str, ...]]
) -> bool:
    granted = set(permissions)
    return any(has_permission(granted, *_normalize(t)) for t in required)


def has_all_permissions(
    permissions: Iterable[str], required: Iterable[tuple[str, ...]]
) -> bool:
    granted = set(permissions)
    return all(has_permission(granted, *_normalize(t)) for t in required)


class PermissionChecker:
    """
    Convenience wrapper bound to one principal's permissions and roles.

    Resource helpers default to the ``company`` scope, except the company
    resource itself which defaults to ``own``.
    """

    def __init__(
        self,
        permissions: Iterable[str] | None = None,
        roles: Iterable[str] | None = None,
    ) -> None:
        self.permissions: frozenset[str] = frozenset(permissions or ())
        self.roles: frozenset[str] = frozenset(roles or ())

    def has_permission(
        self, resource: str, action: str, scope: str | None = None
    ) -> bool:
        return has_permission(self.permissions, resource, action, scope)

    def has_any_permission(self, required: Iterable[tuple[str, ...]]) -> bool:
        return has_any_permission(self.permissions, required)

    def has_all_permissions(self, required: Iterable[tuple[str, ...]]) -> bool:
        return has_all_permissions(self.permissions, required)

    # Engineers
    def can_view_engineer(self, scope: str = "company") -> bool:
        return self.has_permission("engineer", "view", scope)

    def can_create_engineer(self) -> bool:
        return self.has_permission("engineer", "create")

    def can_edit_engineer(self, scope: str = "company") -> bool:
        return self.has_permission("engineer", "update", scope)

    def can_delete_engineer(self) -> bool:
        return self.has_permission("engineer", "delete")

    def can_export_engineer(self) -> bool:
        return self.has_permission("engineer", "export")

    # Skill sheets
    def can_view_skill_sheet(self, scope: str = "company") -> bool:
        return self.has_permission("skillsheet", "view", scope)

    def can_create_skill_sheet(self) -> bool:
        return self.has_permission("skillsheet", "create")

    def can_edit_skill_sheet(self, scope: str = "company") -> bool:
        return self.has_permission("skillsheet", "update", scope)

    def can_delete_skill_sheet(self) -> bool:
        return self.has_permission("skillsheet", "delete")

    def can_export_skill_sheet(self) -> bool:
        return self.has_permission("skillsheet", "export")

    # Projects
    def can_view_project(self, scope: str = "company") -> bool:
        return self.has_permission("project", "view", scope)

    def can_create_project(self) -> bool:
        return self.has_permission("project", "create")

    def can_edit_project(self, scope: str = "company") -> bool:
        return self.has_permission("project", "update", scope)

    def can_delete_project(self) -> bool:
        return self.has_permission("project", "delete")

    def can_assign_project(self) -> bool:
        return self.has_permission("project", "assign")

    # Business partners
    def can_view_partner(self, scope: str = "company") -> bool:
        return self.has_permission("partner", "view", scope)

    def can_create_partner(self) -> bool:
        return self.has_permission("partner", "create")

    def can_edit_partner(self, scope: str = "company") -> bool:
        return self.has_permission("partner", "update", scope)

    def can_delete_partner(self) -> bool:
        return self.has_permission("partner", "delete")

    def can_manage_partner(self) -> bool:
        return self.has_permission("partner", "manage")

    # Approaches
    def can_view_approach(self, scope: str = "company") -> bool:
        return self.has_permission("approach", "view", scope)

    def can_create_approach(self) -> bool:
        return self.has_permission("approach", "create")

    def can_edit_approach(self) -> bool:
        return self.has_permission("approach", "update")

    def can_delete_approach(self) -> bool:
        return self.has_permission("approach", "delete")

    def can_send_approach(self) -> bool:
        return self.has_permission("approach", "send")

    # Offers
    def can_view_offer(self, scope: str = "company") -> bool:
        return self.has_permission("offer", "view", scope)

    def can_create_offer(self) -> bool:
        return self.has_permission("offer", "create")

    def can_edit_offer(self) -> bool:
        return self.has_permission("offer", "update")

    def can_delete_offer(self) -> bool:
        return self.has_permission("offer", "delete")

    # Users
    def can_view_user(self, scope: str = "company") -> bool:
        return self.has_permission("user", "view", scope)

    def can_create_user(self) -> bool:
        return self.has_permission("user", "create")

    def can_edit_user(self, scope: str = "company") -> bool:
        return self.has_permission("user", "update", scope)

    def can_delete_user(self) -> bool:
        return self.has_permission("user", "delete")

    def can_manage_user_role(self) -> bool:
        return self.has_permission("user", "manage_role")

    # Company
    def can_view_company(self, scope: str = "own") -> bool:
        return self.has_permission("company", "view", scope)

    def can_edit_company(self, scope: str = "own") -> bool:
        return self.has_permission("company", "update", scope)

    # Contracts
    def can_view_contract(self, scope: str = "company") -> bool:
        return self.has_permission("contract", "view", scope)

    def can_create_contract(self) -> bool:
        return self.has_permission("contract", "create")

    def can_edit_contract(self) -> bool:
        return self.has_permission("contract", "update")

    # Reports
    def can_view_report(self, scope: str = "company") -> bool:
        return self.has_permission("report", "view", scope)

    def can_create_report(self) -> bool:
        return self.has_permission("report", "create")

    def can_export_report(self) -> bool:
        return self.has_permission("report", "export")

    # Settings
    def can_view_settings(self) -> bool:
        return self.has_permission("settings", "view")

    def can_edit_settings(self) -> bool:
        return self.has_permission("settings", "update")

    # Roles
    def has_role(self, *roles: str) -> bool:
        return any(role in self.roles for role in roles)

    def is_admin(self) -> bool:
        return self.has_role("admin", "管理者")

    def is_sales(self) -> bool:
        return self.has_role("sales", "営業")

    def is_engineer(self) -> bool:
        return self.has_role("engineer", "エンジニア")

    def is_client_admin(self) -> bool:
        return self.has_role("client_admin")

    def is_client_user(self) -> bool:
        return self.has_role("client_user")
