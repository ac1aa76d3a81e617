"""
Screen route to required-permission map.

Routes are frontend paths; ``:param`` segments match any single segment.
"""

from __future__ import annotations

from collections.abc import Callable

from .permission_check import PermissionChecker

RoutePermission = tuple[str, str, str | None]

ROUTE_PERMISSIONS: dict[str, list[RoutePermission]] = {
    "/dashboard": [],
    # Engineers
    "/engineers/list": [("engineer", "view", "company")],
    "/engineers/register": [("engineer", "create", None)],
    "/engineers/:id": [("engineer", "view", "company")],
    "/engineers/edit/:id": [("engineer", "update", "company")],
    # Skill sheets
    "/skillsheets/list": [("skillsheet", "view", "company")],
    "/skillsheets/:id": [("skillsheet", "view", "company")],
    "/skillsheets/edit/:id": [("skillsheet", "update", "company")],
    # Projects
    "/projects/list": [("project", "view", "company")],
    "/projects/new": [("project", "create", None)],
    "/projects/:id": [("project", "view", "company")],
    "/projects/edit/:id": [("project", "update", "company")],
    # Approaches
    "/approaches/history": [("approach", "view", "company")],
    "/approaches/create": [("approach", "create", None)],
    # Business partners
    "/business-partners": [("partner", "view", "company")],
    "/business-partners/new": [("partner", "create", None)],
    "/business-partners/:id": [("partner", "view", "company")],
    "/business-partners/:id/edit": [("partner", "update", "company")],
    "/business-partners/:partnerId/users": [("partner", "manage", None)],
    "/business-partners/:partnerId/access-control": [("partner", "manage", None)],
    "/business-partners/:partnerId/ng-list": [("partner", "manage", None)],
    # Settings
    "/settings": [("settings", "view", None)],
    "/profile": [],
    # Client portal
    "/client/offers": [("offer", "view", "company")],
    "/client/offers/create": [("offer", "create", None)],
    "/client/engineers/search": [("skillsheet", "search", "allowed")],
}


def _matches(pattern: str, path: str) -> bool:
    pattern_parts = pattern.split("/")
    path_parts = path.split("/")
    if len(pattern_parts) != len(path_parts):
        return False
    return all(
        expected.startswith(":") or expected == actual
        for expected, actual in zip(pattern_parts, path_parts)
    )


def get_route_permissions(path: str) -> list[RoutePermission]:
    """Permissions required for ``path``; unknown routes require none."""
    if path in ROUTE_PERMISSIONS:
        return ROUTE_PERMISSIONS[path]

    for pattern, permissions in ROUTE_PERMISSIONS.items():
        if _matches(pattern, path):
            return permissions

    return []


HasPermission = Callable[[str, str, "str | None"], bool]


def can_access_route(path: str, checker: PermissionChecker | HasPermission) -> bool:
    required = get_route_permissions(path)
    if not required:
        return True

    has_permission = (
        checker.has_permission if isinstance(checker, PermissionChecker) else checker
    )
    return all(has_permission(resource, action, scope) for resource, action, scope in required)
