"""Tests for OrganizationService."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.application.pagination import paginate
from app.application.services.organization_service import OrganizationService
from app.domain.entities import hash_api_key
from app.domain.errors import (
    CrossOrgAccessDeniedError,
    DuplicateOrganizationError,
    InsufficientRoleError,
    OrganizationInUseError,
    OrganizationNotFoundError,
    SelfDeactivationError,
)


@pytest.fixture
def organizations():
    repo = AsyncMock()
    repo.get_by_name.return_value = None
    repo.create.side_effect = lambda org: org
    repo.update.side_effect = lambda org: org
    return repo


@pytest.fixture
def users():
    return AsyncMock()


@pytest.fixture
def service(organizations, users) -> OrganizationService:
    return OrganizationService(organizations, users)


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_returns_key_once(self, service, organizations, superadmin_identity):
        org, api_key = await service.create(superadmin_identity, "Initech", description="desc")

        assert org.name == "Initech"
        assert org.api_key_hash == hash_api_key(api_key)
        organizations.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_name(self, service, organizations, superadmin_identity, org):
        organizations.get_by_name.return_value = org

        with pytest.raises(DuplicateOrganizationError):
            await service.create(superadmin_identity, org.name)
        organizations.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_cannot_create(self, service, admin_identity):
        with pytest.raises(InsufficientRoleError):
            await service.create(admin_identity, "Initech")


class TestRead:
    @pytest.mark.asyncio
    async def test_list_is_superadmin_only(self, service, organizations, admin_identity):
        with pytest.raises(InsufficientRoleError):
            await service.list_organizations(admin_identity, paginate(None, None))
        organizations.list_page.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_uses_window(self, service, organizations, superadmin_identity):
        organizations.list_page.return_value = ([], 0)

        await service.list_organizations(superadmin_identity, paginate("2", "25"))

        organizations.list_page.assert_awaited_once_with(25, 25)

    @pytest.mark.asyncio
    async def test_get_own_organization_with_user_count(
        self, service, organizations, users, user_identity, org
    ):
        organizations.get_by_id.return_value = org
        users.count_in_organization.return_value = 7

        result, user_count = await service.get(user_identity, org.id)

        assert result is org
        assert user_count == 7

    @pytest.mark.asyncio
    async def test_get_foreign_organization_is_denied(self, service, organizations, user_identity):
        with pytest.raises(CrossOrgAccessDeniedError):
            await service.get(user_identity, uuid4())
        organizations.get_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_unknown(self, service, organizations, superadmin_identity):
        organizations.get_by_id.return_value = None
        with pytest.raises(OrganizationNotFoundError):
            await service.get(superadmin_identity, uuid4())


class TestUpdate:
    @pytest.mark.asyncio
    async def test_settings_are_merged(self, service, organizations, admin_identity, make_org, org):
        current = make_org("Acme", id=org.id, settings={"theme": "dark", "lang": "en"})
        organizations.get_by_id.return_value = current

        updated = await service.update(admin_identity, org.id, settings={"lang": "fr"})

        assert updated.settings == {"theme": "dark", "lang": "fr"}

    @pytest.mark.asyncio
    async def test_admin_cannot_deactivate_own_org(
        self, service, organizations, admin_identity, org
    ):
        with pytest.raises(SelfDeactivationError):
            await service.update(admin_identity, org.id, is_active=False)
        organizations.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_superadmin_reactivates_inactive_org(
        self, service, organizations, superadmin_identity, make_org
    ):
        inactive = make_org("Dormant", is_active=False)
        organizations.get_by_id.return_value = inactive

        updated = await service.update(superadmin_identity, inactive.id, is_active=True)

        assert updated.is_active is True

    @pytest.mark.asyncio
    async def test_rename_to_taken_name(
        self, service, organizations, admin_identity, make_org, org
    ):
        organizations.get_by_id.return_value = org
        organizations.get_by_name.return_value = make_org("Globex")

        with pytest.raises(DuplicateOrganizationError):
            await service.update(admin_identity, org.id, name="Globex")


class TestDeleteAndRotate:
    @pytest.mark.asyncio
    async def test_delete_with_active_users(
        self, service, organizations, users, superadmin_identity, org
    ):
        organizations.get_by_id.return_value = org
        users.count_in_organization.return_value = 2

        with pytest.raises(OrganizationInUseError):
            await service.delete(superadmin_identity, org.id)
        organizations.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_empty_organization(
        self, service, organizations, users, superadmin_identity, org
    ):
        organizations.get_by_id.return_value = org
        users.count_in_organization.return_value = 0

        await service.delete(superadmin_identity, org.id)

        users.count_in_organization.assert_awaited_once_with(org.id, active_only=True)
        organizations.delete.assert_awaited_once_with(org.id)

    @pytest.mark.asyncio
    async def test_rotate_invalidates_previous_key(
        self, service, organizations, admin_identity, org
    ):
        previous = org.api_key_hash
        organizations.get_by_id.return_value = org

        updated, api_key = await service.rotate_api_key(admin_identity, org.id)

        assert updated.api_key_hash != previous
        assert updated.api_key_hash == hash_api_key(api_key)
