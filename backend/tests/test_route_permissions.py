"""
Tests for screen route permission lookup.
"""

from seshub.services.permission_check import PermissionChecker
from seshub.services.route_permissions import can_access_route, get_route_permissions


class TestGetRoutePermissions:
    def test_exact_route(self) -> None:
        assert get_route_permissions("/engineers/list") == [("engineer", "view", "company")]

    def test_exact_route_wins_over_pattern(self) -> None:
        assert get_route_permissions("/projects/new") == [("project", "create", None)]

    def test_parameterized_route(self) -> None:
        assert get_route_permissions("/engineers/0b6c9f3e") == [
            ("engineer", "view", "company")
        ]
        assert get_route_permissions("/engineers/edit/0b6c9f3e") == [
            ("engineer", "update", "company")
        ]
        assert get_route_permissions("/business-partners/42/ng-list") == [
            ("partner", "manage", None)
        ]

    def test_unknown_route_requires_nothing(self) -> None:
        assert get_route_permissions("/nowhere") == []
        assert get_route_permissions("/engineers/a/b/c") == []

    def test_open_routes(self) -> None:
        assert get_route_permissions("/dashboard") == []
        assert get_route_permissions("/profile") == []


class TestCanAccessRoute:
    def test_with_checker(self) -> None:
        checker = PermissionChecker(["engineer:view:company"])
        assert can_access_route("/engineers/list", checker)
        assert not can_access_route("/engineers/register", checker)
        assert can_access_route("/dashboard", checker)

    def test_with_callable(self) -> None:
        calls = []

        def allow_partner(resource, action, scope):
            calls.append((resource, action, scope))
            return resource == "partner"

        assert can_access_route("/business-partners/7/users", allow_partner)
        assert not can_access_route("/settings", allow_partner)
        assert ("partner", "manage", None) in calls

    def test_client_search_route(self) -> None:
        checker = PermissionChecker(["engineer:view:allowed"])
        assert not can_access_route("/client/engineers/search", checker)
        assert can_access_route(
            "/client/engineers/search", PermissionChecker(["skillsheet:search:allowed"])
        )
