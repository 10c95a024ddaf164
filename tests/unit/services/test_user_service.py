"""Tests for UserService."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.application.services.user_service import UserService, parse_role
from app.domain.entities import hash_api_key
from app.domain.errors import (
    DuplicateUserError,
    InsufficientRoleError,
    InvalidRoleError,
    NotOwnerError,
    OrganizationNotFoundError,
    PrivilegeEscalationError,
    UserNotFoundError,
)
from app.domain.roles import Role


@pytest.fixture
def users():
    repo = AsyncMock()
    repo.find_by_username_or_email.return_value = None
    repo.create.side_effect = lambda user: user
    repo.update.side_effect = lambda user: user
    return repo


@pytest.fixture
def organizations():
    return AsyncMock()


@pytest.fixture
def service(users, organizations) -> UserService:
    return UserService(users, organizations)


class TestParseRole:
    def test_none_passes_through(self):
        assert parse_role(None) is None

    def test_unknown_role(self):
        with pytest.raises(InvalidRoleError):
            parse_role("owner")


class TestProfile:
    @pytest.mark.asyncio
    async def test_profile(self, service, users, make_user, user_identity, org):
        me = make_user("alice", org.id, id=user_identity.id)
        users.get_by_id.return_value = me

        assert await service.profile(user_identity) is me

    @pytest.mark.asyncio
    async def test_rotate_api_key(self, service, users, make_user, user_identity, org):
        users.get_by_id.return_value = make_user("alice", org.id, id=user_identity.id)

        api_key = await service.rotate_api_key(user_identity)

        saved = users.update.await_args.args[0]
        assert saved.api_key_hash == hash_api_key(api_key)


class TestGet:
    @pytest.mark.asyncio
    async def test_user_reads_itself(self, service, users, make_user, user_identity, org):
        users.get_in_organization.return_value = make_user("alice", org.id, id=user_identity.id)

        user = await service.get(user_identity, user_identity.id)

        assert user.id == user_identity.id
        users.get_in_organization.assert_awaited_once_with(user_identity.id, org.id)

    @pytest.mark.asyncio
    async def test_user_cannot_read_peer(self, service, users, make_user, user_identity, org):
        peer = make_user("bob", org.id)
        users.get_in_organization.return_value = peer

        with pytest.raises(NotOwnerError):
            await service.get(user_identity, peer.id)

    @pytest.mark.asyncio
    async def test_other_organization_looks_missing(self, service, users, admin_identity):
        users.get_in_organization.return_value = None

        with pytest.raises(UserNotFoundError, match="access denied"):
            await service.get(admin_identity, uuid4())

    @pytest.mark.asyncio
    async def test_superadmin_reads_anyone(self, service, users, make_user, superadmin_identity):
        target = make_user("carol", uuid4())
        users.get_by_id.return_value = target

        assert await service.get(superadmin_identity, target.id) is target


class TestUpdate:
    @pytest.mark.asyncio
    async def test_user_updates_own_names(self, service, users, make_user, user_identity, org):
        users.get_in_organization.return_value = make_user("alice", org.id, id=user_identity.id)

        updated = await service.update(user_identity, user_identity.id, first_name="Alice")

        assert updated.first_name == "Alice"

    @pytest.mark.asyncio
    async def test_user_cannot_change_own_role(self, service, users, make_user, user_identity, org):
        users.get_in_organization.return_value = make_user("alice", org.id, id=user_identity.id)

        with pytest.raises(InsufficientRoleError):
            await service.update(user_identity, user_identity.id, role="admin")
        users.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_promotes_to_admin(self, service, users, make_user, admin_identity, org):
        target = make_user("bob", org.id)
        users.get_in_organization.return_value = target

        updated = await service.update(admin_identity, target.id, role="admin")

        assert updated.role is Role.ADMIN

    @pytest.mark.asyncio
    async def test_admin_cannot_grant_superadmin(
        self, service, users, make_user, admin_identity, org
    ):
        target = make_user("bob", org.id)
        users.get_in_organization.return_value = target

        with pytest.raises(PrivilegeEscalationError):
            await service.update(admin_identity, target.id, role="superadmin")

    @pytest.mark.asyncio
    async def test_duplicate_email(self, service, users, make_user, admin_identity, org):
        target = make_user("bob", org.id)
        users.get_in_organization.return_value = target
        users.find_by_username_or_email.return_value = make_user("carol", org.id)

        with pytest.raises(DuplicateUserError):
            await service.update(admin_identity, target.id, email="carol@example.com")


class TestListAndSearch:
    @pytest.mark.asyncio
    async def test_list_is_admin_only(self, service, make_ctx, user_identity, org):
        with pytest.raises(InsufficientRoleError):
            await service.list_in_organization(make_ctx(user_identity, org))

    @pytest.mark.asyncio
    async def test_search_filters_and_sort(self, service, users, make_ctx, admin_identity, org):
        users.search.return_value = ([], 0)

        await service.search(
            make_ctx(admin_identity, org, page="2", limit="5"),
            username="al",
            role="ADMIN",
            is_active=True,
            sort_by="createdAt",
            sort_order="desc",
        )

        users.search.assert_awaited_once_with(
            org.id,
            username="al",
            email=None,
            role=Role.ADMIN,
            is_active=True,
            sort_by="createdAt",
            descending=True,
            skip=5,
            limit=5,
        )

    @pytest.mark.asyncio
    async def test_unknown_sort_key_falls_back(self, service, users, make_ctx, admin_identity, org):
        users.search.return_value = ([], 0)

        await service.search(make_ctx(admin_identity, org), sort_by="password")

        assert users.search.await_args.kwargs["sort_by"] == "username"


class TestCreatePrivileged:
    @pytest.mark.asyncio
    async def test_creates_admin_with_key(
        self, service, users, organizations, superadmin_identity, org
    ):
        organizations.get_by_id.return_value = org

        user, api_key = await service.create_privileged(
            superadmin_identity,
            username="boss",
            email="boss@example.com",
            role="admin",
            organization_id=org.id,
        )

        assert user.role is Role.ADMIN
        assert user.organization_id == org.id
        assert user.api_key_hash == hash_api_key(api_key)

    @pytest.mark.asyncio
    async def test_plain_role_is_rejected(self, service, superadmin_identity, org):
        with pytest.raises(InvalidRoleError):
            await service.create_privileged(
                superadmin_identity, username="u", email="u@example.com", role="user",
                organization_id=org.id,
            )

    @pytest.mark.asyncio
    async def test_admin_cannot_create(self, service, admin_identity, org):
        with pytest.raises(InsufficientRoleError):
            await service.create_privileged(
                admin_identity, username="u", email="u@example.com", role="admin",
                organization_id=org.id,
            )

    @pytest.mark.asyncio
    async def test_inactive_organization(
        self, service, organizations, superadmin_identity, make_org
    ):
        inactive = make_org("Dormant", is_active=False)
        organizations.get_by_id.return_value = inactive

        with pytest.raises(OrganizationNotFoundError):
            await service.create_privileged(
                superadmin_identity, username="u", email="u@example.com", role="admin",
                organization_id=inactive.id,
            )

    @pytest.mark.asyncio
    async def test_duplicate_user(
        self, service, users, organizations, make_user, superadmin_identity, org
    ):
        organizations.get_by_id.return_value = org
        users.find_by_username_or_email.return_value = make_user("u", org.id)

        with pytest.raises(DuplicateUserError):
            await service.create_privileged(
                superadmin_identity, username="u", email="u@example.com", role="admin",
                organization_id=org.id,
            )
