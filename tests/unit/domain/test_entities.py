"""Tests for domain entities."""

from uuid import uuid4

import pytest

from app.domain.entities import Chat, Message, Organization, User, hash_api_key
from app.domain.roles import Role


class TestOrganization:
    """Test Organization entity."""

    def test_name_is_trimmed(self):
        org = Organization(id=uuid4(), name="  Acme  ", api_key_hash="x")
        assert org.name == "Acme"

    def test_name_is_required(self):
        with pytest.raises(ValueError, match="name is required"):
            Organization(id=uuid4(), name="   ", api_key_hash="x")

    def test_rotate_api_key_replaces_digest(self):
        org = Organization(id=uuid4(), name="Acme", api_key_hash="old")
        api_key = org.rotate_api_key()

        assert len(api_key) == 64
        assert org.api_key_hash == hash_api_key(api_key)

    def test_merge_settings_is_shallow(self):
        org = Organization(
            id=uuid4(), name="Acme", api_key_hash="x", settings={"a": 1, "b": {"c": 2}}
        )
        org.merge_settings({"b": {"d": 3}, "e": 4})
        assert org.settings == {"a": 1, "b": {"d": 3}, "e": 4}


class TestUser:
    """Test User entity."""

    def test_user_creation(self):
        org_id = uuid4()
        user = User(id=uuid4(), username="alice", email="Alice@Example.com", organization_id=org_id)

        assert user.role is Role.USER
        assert user.email == "alice@example.com"

    def test_role_is_parsed(self):
        user = User(
            id=uuid4(), username="a", email="a@example.com", role="admin", organization_id=uuid4()
        )
        assert user.role is Role.ADMIN

    def test_non_superadmin_requires_organization(self):
        with pytest.raises(ValueError, match="organization_id is required"):
            User(id=uuid4(), username="a", email="a@example.com")

    def test_superadmin_may_be_homeless(self):
        user = User(id=uuid4(), username="root", email="root@example.com", role=Role.SUPERADMIN)
        assert user.to_identity().is_superadmin

    def test_to_identity(self):
        org_id = uuid4()
        user = User(
            id=uuid4(), username="a", email="a@example.com", organization_id=org_id, is_active=False
        )
        identity = user.to_identity()

        assert identity.id == user.id
        assert identity.organization_id == org_id
        assert identity.is_active is False


class TestChat:
    """Test Chat entity."""

    def test_title_is_required(self):
        with pytest.raises(ValueError, match="title is required"):
            Chat(id=uuid4(), user_id=uuid4(), organization_id=uuid4(), title=" ")

    def test_source_is_validated(self):
        with pytest.raises(ValueError, match="source must be one of"):
            Chat(id=uuid4(), user_id=uuid4(), organization_id=uuid4(), title="t", source="fax")

    def test_touch_moves_updated_at(self):
        chat = Chat(id=uuid4(), user_id=uuid4(), organization_id=uuid4(), title="t")
        before = chat.updated_at
        chat.touch()
        assert chat.updated_at >= before


class TestMessage:
    """Test Message entity."""

    def test_role_is_validated(self):
        with pytest.raises(ValueError, match="role must be one of"):
            Message(
                id=uuid4(),
                chat_id=uuid4(),
                user_id=uuid4(),
                organization_id=uuid4(),
                role="robot",
                content="hi",
            )

    def test_empty_content_is_allowed(self):
        message = Message(
            id=uuid4(),
            chat_id=uuid4(),
            user_id=uuid4(),
            organization_id=uuid4(),
            role="assistant",
            content="",
        )
        assert message.tokens == 0
        assert message.metadata == {}
