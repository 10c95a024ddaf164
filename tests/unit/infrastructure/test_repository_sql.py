"""Tests for repository statements and store-error translation.

Statements are compiled against the PostgreSQL dialect; nothing here
needs a running database.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from app.domain.errors import DuplicateOrganizationError
from app.domain.roles import Role
from app.domain.scope import QueryScope
from app.infrastructure.repositories import (
    AnalyticsRepositoryImpl,
    ChatRepositoryImpl,
    MessageRepositoryImpl,
    OrganizationRepositoryImpl,
    UserRepositoryImpl,
)
from app.infrastructure.repositories.base import contains_pattern

START = datetime(2024, 1, 1, tzinfo=UTC)
END = datetime(2024, 1, 31, tzinfo=UTC)


def sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


@pytest.fixture
def session():
    session = AsyncMock()
    session.add = MagicMock()
    return session


class TestContainsPattern:
    def test_wildcards_are_escaped(self):
        assert contains_pattern("50%_off") == "%50\\%\\_off%"

    def test_backslash_is_escaped(self):
        assert contains_pattern("a\\b") == "%a\\\\b%"


class TestAnalyticsStatements:
    def test_activity_groups_by_utc_day(self, session):
        compiled = sql(AnalyticsRepositoryImpl(session).activity_statement(uuid4(), START, END))

        assert "date_trunc('day', timezone('UTC', chats.created_at))" in compiled
        assert "chats.organization_id =" in compiled
        assert "GROUP BY" in compiled
        assert "ASC" in compiled

    def test_role_stats_are_bounded_by_chat_set(self, session):
        compiled = sql(
            AnalyticsRepositoryImpl(session).role_stats_statement([uuid4()], START, END)
        )

        assert "messages.chat_id IN" in compiled
        assert "sum(messages.tokens)" in compiled
        assert "avg(messages.latency)" in compiled
        assert "GROUP BY messages.role" in compiled

    def test_top_actors_by_chats(self, session):
        compiled = sql(
            AnalyticsRepositoryImpl(session).top_actors_statement(uuid4(), START, END, 5)
        )

        assert "max(chats.updated_at)" in compiled
        assert "DESC NULLS LAST" in compiled
        assert "LIMIT" in compiled

    def test_top_actors_by_messages(self, session):
        compiled = sql(
            AnalyticsRepositoryImpl(session).top_actors_statement(
                uuid4(), START, END, 5, "messages"
            )
        )

        assert "max(messages.created_at)" in compiled
        assert "messages.organization_id =" in compiled

    def test_user_activity_keeps_users_without_chats(self, session):
        compiled = sql(AnalyticsRepositoryImpl(session).user_activity_statement(uuid4()))

        assert "LEFT OUTER JOIN" in compiled
        assert "coalesce" in compiled

    @pytest.mark.asyncio
    async def test_empty_chat_set_runs_no_query(self, session):
        assert await AnalyticsRepositoryImpl(session).message_stats_by_role([], START, END) == []
        session.execute.assert_not_called()


class TestScopedStatements:
    def test_user_scope_adds_owner_filter(self, session):
        scope = QueryScope(uuid4(), user_id=uuid4())
        compiled = sql(ChatRepositoryImpl(session).search_statement(scope, "refund"))

        assert "chats.organization_id =" in compiled
        assert "chats.user_id =" in compiled

    def test_admin_scope_has_no_owner_filter(self, session):
        compiled = sql(ChatRepositoryImpl(session).search_statement(QueryScope(uuid4()), "x"))
        assert "chats.user_id" not in compiled.split("WHERE", 1)[1]

    def test_search_matches_title_or_tags(self, session):
        compiled = sql(ChatRepositoryImpl(session).search_statement(QueryScope(uuid4()), "x"))

        assert "chats.title ILIKE" in compiled
        assert "array_to_string(chats.tags" in compiled

    def test_user_search_filters(self, session):
        stmt = UserRepositoryImpl(session).search_statement(
            uuid4(), username="al", role=Role.ADMIN, is_active=True
        )
        compiled = sql(stmt)

        assert "users.organization_id =" in compiled
        assert "users.username ILIKE" in compiled
        assert "users.role =" in compiled
        assert "users.email" not in compiled.split("WHERE", 1)[1]


class TestWrites:
    @pytest.mark.asyncio
    async def test_unique_violation_becomes_conflict(self, session, org):
        session.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        with pytest.raises(DuplicateOrganizationError):
            await OrganizationRepositoryImpl(session).create(org)

    @pytest.mark.asyncio
    async def test_delete_with_messages(self, session):
        session.execute.side_effect = [MagicMock(), MagicMock(rowcount=1)]

        assert await ChatRepositoryImpl(session).delete_with_messages(uuid4()) is True
        assert session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_list_for_no_chats(self, session):
        assert await MessageRepositoryImpl(session).list_for_chats([]) == []
        session.execute.assert_not_called()
