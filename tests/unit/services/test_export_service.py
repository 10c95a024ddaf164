"""Tests for ExportService."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.application.services.export_service import ExportService
from app.domain.entities import Message
from app.domain.errors import InsufficientRoleError


@pytest.fixture
def repos():
    return AsyncMock(), AsyncMock(), AsyncMock()


@pytest.fixture
def service(repos) -> ExportService:
    chats, messages, analytics = repos
    return ExportService(chats, messages, analytics)


def _message(chat_id, org_id, content):
    return Message(
        id=uuid4(),
        chat_id=chat_id,
        user_id=uuid4(),
        organization_id=org_id,
        role="user",
        content=content,
    )


class TestChatsWithMessages:
    @pytest.mark.asyncio
    async def test_groups_messages_under_their_chat(
        self, service, repos, make_ctx, make_chat, admin_identity, org, window
    ):
        chats, messages, _ = repos
        first = make_chat(uuid4(), org.id, title="first")
        second = make_chat(uuid4(), org.id, title="second")
        chats.list_for_export.return_value = [first, second]
        messages.list_for_chats.return_value = [
            _message(first.id, org.id, "a"),
            _message(first.id, org.id, "b"),
        ]
        owner = uuid4()

        exports = await service.chats_with_messages(
            make_ctx(admin_identity, org, window=window), user_id=owner
        )

        assert [e.chat.title for e in exports] == ["first", "second"]
        assert [m.content for m in exports[0].messages] == ["a", "b"]
        assert exports[1].messages == []
        chats.list_for_export.assert_awaited_once_with(
            org.id, start=window.start, end=window.end, user_id=owner
        )

    @pytest.mark.asyncio
    async def test_unbounded_without_window(self, service, repos, make_ctx, admin_identity, org):
        chats, messages, _ = repos
        chats.list_for_export.return_value = []
        messages.list_for_chats.return_value = []

        assert await service.chats_with_messages(make_ctx(admin_identity, org)) == []
        chats.list_for_export.assert_awaited_once_with(org.id, start=None, end=None, user_id=None)

    @pytest.mark.asyncio
    async def test_requires_admin(self, service, repos, make_ctx, user_identity, org):
        with pytest.raises(InsufficientRoleError):
            await service.chats_with_messages(make_ctx(user_identity, org))
        repos[0].list_for_export.assert_not_called()


class TestUserActivity:
    @pytest.mark.asyncio
    async def test_reads_context_organization(self, service, repos, make_ctx, admin_identity, org):
        _, _, analytics = repos
        analytics.user_activity.return_value = []

        await service.user_activity(make_ctx(admin_identity, org))

        analytics.user_activity.assert_awaited_once_with(org.id)
