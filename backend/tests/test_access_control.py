"""
Tests for business partner engineer visibility, NG lists and view logging.
"""

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from seshub.core.exceptions import NotFoundError, ValidationError
from seshub.models.business_partner import AccessPermissionType
from seshub.models.engineer import EngineerStatus
from seshub.repositories.client_user import ClientViewLogRepository
from seshub.services.access_control import AccessControlService


def _ids(result) -> set[uuid.UUID]:
    return {engineer.id for engineer in result["engineers"]}


@pytest.fixture
async def roster(ses_company, other_ses_company, engineer_factory):
    """Engineers of the partner's SES company in every interesting status."""
    return {
        "available": await engineer_factory(
            ses_company, "佐藤", "一郎", skills=["Python", "Django"], years_of_experience=8
        ),
        "waiting": await engineer_factory(
            ses_company, "鈴木", "二郎", EngineerStatus.WAITING, skills=["Java"],
            years_of_experience=3,
        ),
        "waiting_soon": await engineer_factory(
            ses_company, "高橋", "三郎", EngineerStatus.WAITING_SOON, skills=[]
        ),
        "scheduled": await engineer_factory(
            ses_company, "田中", "四郎", EngineerStatus.SCHEDULED, skills=["python"]
        ),
        "working": await engineer_factory(ses_company, "伊藤", "五郎", EngineerStatus.WORKING),
        "foreign": await engineer_factory(other_ses_company, "外部", "六郎"),
    }


class TestPermissionResolution:
    @pytest.mark.asyncio
    async def test_no_rules_means_full_access(
        self, test_session: AsyncSession, partner, roster
    ) -> None:
        service = AccessControlService(test_session)
        result = await service.get_viewable_engineers(partner)

        assert result["permission_type"] == AccessPermissionType.FULL_ACCESS
        assert _ids(result) == {
            roster[key].id
            for key in ("available", "waiting", "waiting_soon", "scheduled", "working")
        }
        assert result["pagination"] == {"total": 5, "page": 1, "limit": 20, "total_pages": 1}

    @pytest.mark.asyncio
    async def test_waiting_only(
        self, test_session: AsyncSession, partner, ses_company, roster
    ) -> None:
        service = AccessControlService(test_session)
        await service.set_access_permissions(
            partner.id, ses_company.id, AccessPermissionType.WAITING_ONLY
        )

        result = await service.get_viewable_engineers(partner)
        assert result["permission_type"] == AccessPermissionType.WAITING_ONLY
        assert _ids(result) == {roster["waiting"].id, roster["waiting_soon"].id}
        assert not await service.can_view_engineer(partner, roster["available"])
        assert await service.can_view_engineer(partner, roster["waiting_soon"])

    @pytest.mark.asyncio
    async def test_selected_only(
        self, test_session: AsyncSession, partner, ses_company, roster
    ) -> None:
        service = AccessControlService(test_session)
        selected = [roster["available"].id, roster["working"].id]
        summary = await service.set_access_permissions(
            partner.id, ses_company.id, AccessPermissionType.SELECTED_ONLY, selected
        )

        assert summary["permission_type"] == AccessPermissionType.SELECTED_ONLY
        assert set(summary["engineer_ids"]) == set(selected)
        result = await service.get_viewable_engineers(partner)
        assert _ids(result) == set(selected)
        assert not await service.can_view_engineer(partner, roster["waiting"])

    @pytest.mark.asyncio
    async def test_selected_only_without_engineers_shows_nobody(
        self, test_session: AsyncSession, partner, ses_company, roster
    ) -> None:
        service = AccessControlService(test_session)
        await service.set_access_permissions(
            partner.id, ses_company.id, AccessPermissionType.SELECTED_ONLY, []
        )

        result = await service.get_viewable_engineers(partner)
        assert result["engineers"] == []
        assert result["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_replacing_rules(
        self, test_session: AsyncSession, partner, ses_company, roster
    ) -> None:
        service = AccessControlService(test_session)
        await service.set_access_permissions(
            partner.id, ses_company.id, AccessPermissionType.WAITING_ONLY
        )
        await service.set_access_permissions(
            partner.id, ses_company.id, AccessPermissionType.FULL_ACCESS
        )

        permission_type, engineer_ids = await service.resolve_permission(partner.id)
        assert permission_type == AccessPermissionType.FULL_ACCESS
        assert engineer_ids == set()

    @pytest.mark.asyncio
    async def test_foreign_engineers_are_rejected(
        self, test_session: AsyncSession, partner, ses_company, roster
    ) -> None:
        service = AccessControlService(test_session)
        with pytest.raises(ValidationError) as exc_info:
            await service.set_access_permissions(
                partner.id,
                ses_company.id,
                AccessPermissionType.SELECTED_ONLY,
                [roster["foreign"].id],
            )
        assert exc_info.value.details["engineer_ids"] == [str(roster["foreign"].id)]

    @pytest.mark.asyncio
    async def test_foreign_engineer_is_never_visible(
        self, test_session: AsyncSession, partner, roster
    ) -> None:
        service = AccessControlService(test_session)
        assert not await service.can_view_engineer(partner, roster["foreign"])

    @pytest.mark.asyncio
    async def test_inactive_engineer_is_hidden_everywhere(
        self, test_session: AsyncSession, partner, ses_company, engineer_factory
    ) -> None:
        retired = await engineer_factory(ses_company, "退職", "七郎", is_active=False)
        service = AccessControlService(test_session)

        assert not await service.can_view_engineer(partner, retired)
        assert retired.id not in _ids(await service.get_viewable_engineers(partner))

    @pytest.mark.asyncio
    async def test_partner_of_another_company(
        self, test_session: AsyncSession, partner, other_ses_company
    ) -> None:
        service = AccessControlService(test_session)
        with pytest.raises(NotFoundError):
            await service.get_access_permissions(partner.id, other_ses_company.id)


class TestNgList:
    @pytest.mark.asyncio
    async def test_ng_engineer_is_hidden_under_full_access(
        self, test_session: AsyncSession, partner, ses_company, roster, admin_user
    ) -> None:
        service = AccessControlService(test_session)
        entry = await service.add_to_ng_list(
            partner.id, ses_company.id, roster["available"].id, "前回トラブル", admin_user.id
        )

        assert entry.reason == "前回トラブル"
        assert not await service.can_view_engineer(partner, roster["available"])
        result = await service.get_viewable_engineers(partner)
        assert roster["available"].id not in _ids(result)

        summary = await service.get_access_permissions(partner.id, ses_company.id)
        assert summary["ng_engineer_ids"] == [roster["available"].id]

    @pytest.mark.asyncio
    async def test_adding_to_ng_list_removes_selection(
        self, test_session: AsyncSession, partner, ses_company, roster
    ) -> None:
        service = AccessControlService(test_session)
        selected = [roster["available"].id, roster["waiting"].id]
        await service.set_access_permissions(
            partner.id, ses_company.id, AccessPermissionType.SELECTED_ONLY, selected
        )
        await service.add_to_ng_list(partner.id, ses_company.id, roster["waiting"].id)

        _, engineer_ids = await service.resolve_permission(partner.id)
        assert engineer_ids == {roster["available"].id}

    @pytest.mark.asyncio
    async def test_duplicate_and_unknown_entries(
        self, test_session: AsyncSession, partner, ses_company, roster
    ) -> None:
        service = AccessControlService(test_session)
        await service.add_to_ng_list(partner.id, ses_company.id, roster["working"].id)

        with pytest.raises(ValidationError):
            await service.add_to_ng_list(partner.id, ses_company.id, roster["working"].id)
        with pytest.raises(ValidationError):
            await service.add_to_ng_list(partner.id, ses_company.id, roster["foreign"].id)

    @pytest.mark.asyncio
    async def test_remove(
        self, test_session: AsyncSession, partner, ses_company, roster
    ) -> None:
        service = AccessControlService(test_session)
        await service.add_to_ng_list(partner.id, ses_company.id, roster["working"].id)
        await service.remove_from_ng_list(partner.id, ses_company.id, roster["working"].id)

        assert await service.get_ng_list(partner.id, ses_company.id) == []
        with pytest.raises(ValidationError):
            await service.remove_from_ng_list(
                partner.id, ses_company.id, roster["working"].id
            )


class TestViewableFilters:
    @pytest.mark.asyncio
    async def test_availability(self, test_session: AsyncSession, partner, roster) -> None:
        service = AccessControlService(test_session)

        available = await service.get_viewable_engineers(partner, availability="available")
        assert _ids(available) == {
            roster["available"].id,
            roster["waiting"].id,
            roster["waiting_soon"].id,
        }
        waiting = await service.get_viewable_engineers(partner, availability="waiting")
        assert _ids(waiting) == {roster["waiting"].id, roster["waiting_soon"].id}
        scheduled = await service.get_viewable_engineers(partner, availability="scheduled")
        assert _ids(scheduled) == {roster["scheduled"].id}
        everyone = await service.get_viewable_engineers(partner, availability="all")
        assert everyone["pagination"]["total"] == 5

    @pytest.mark.asyncio
    async def test_unknown_availability(self, test_session: AsyncSession, partner) -> None:
        with pytest.raises(ValidationError):
            await AccessControlService(test_session).get_viewable_engineers(
                partner, availability="someday"
            )

    @pytest.mark.asyncio
    async def test_skills_match_case_insensitively(
        self, test_session: AsyncSession, partner, roster
    ) -> None:
        result = await AccessControlService(test_session).get_viewable_engineers(
            partner, skills=["PYTHON"]
        )
        assert _ids(result) == {roster["available"].id, roster["scheduled"].id}
        assert result["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_experience_and_search(
        self, test_session: AsyncSession, partner, roster
    ) -> None:
        service = AccessControlService(test_session)

        veterans = await service.get_viewable_engineers(partner, min_experience=5)
        assert _ids(veterans) == {roster["available"].id}

        found = await service.get_viewable_engineers(partner, search="鈴木")
        assert _ids(found) == {roster["waiting"].id}

    @pytest.mark.asyncio
    async def test_pagination(self, test_session: AsyncSession, partner, roster) -> None:
        service = AccessControlService(test_session)
        first = await service.get_viewable_engineers(partner, page=1, limit=2)
        third = await service.get_viewable_engineers(partner, page=3, limit=2)

        assert len(first["engineers"]) == 2
        assert len(third["engineers"]) == 1
        assert first["pagination"]["total_pages"] == 3
        assert not _ids(first) & _ids(third)


class TestViewLog:
    @pytest.mark.asyncio
    async def test_log_client_view(
        self, test_session: AsyncSession, client_user, roster
    ) -> None:
        service = AccessControlService(test_session)
        await service.log_client_view(
            client_user.id,
            "x" * 80,
            engineer_id=roster["available"].id,
            ip_address="203.0.113.5",
            user_agent="pytest",
        )

        logs = await ClientViewLogRepository(test_session).list_for_user(client_user.id)
        assert len(logs) == 1
        assert logs[0].action == "x" * 50
        assert logs[0].ip_address == "203.0.113.5"
