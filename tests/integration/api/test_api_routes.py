"""HTTP tests for the API surface.

The store is replaced by mocked repositories; everything from credentials
to the response body runs for real.
"""

from dataclasses import dataclass
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.application.services.analytics_service import AnalyticsService
from app.application.services.chat_service import ChatService
from app.application.services.export_service import ExportService
from app.application.services.message_service import MessageService
from app.config import get_settings
from app.domain.entities.analytics import DailyActivity, UserActivity
from app.domain.errors import AuthenticationRequiredError
from app.domain.roles import Role
from app.infrastructure.auth import Authenticated
from app.infrastructure.database.connection import get_db
from app.main import create_app
from app.presentation.http import deps


@dataclass
class Caller:
    authenticated: Authenticated | None = None

    def act_as(self, identity, attached=None) -> None:
        self.authenticated = Authenticated(identity=identity, attached_organization=attached)


@pytest.fixture
def caller() -> Caller:
    return Caller()


@pytest.fixture
def repos():
    return SimpleNamespace(
        chats=AsyncMock(),
        messages=AsyncMock(),
        analytics=AsyncMock(),
        users=AsyncMock(),
    )


@pytest.fixture
def application(settings, caller, repos, org, other_org, monkeypatch):
    known = {org.id: org, other_org.id: other_org}
    organizations = AsyncMock()
    organizations.get_by_id.side_effect = lambda org_id: known.get(org_id)
    monkeypatch.setattr(deps, "OrganizationRepositoryImpl", lambda db: organizations)

    app = create_app(settings)

    async def override_db():
        yield AsyncMock()

    async def override_authenticated():
        if caller.authenticated is None:
            raise AuthenticationRequiredError()
        return caller.authenticated

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[deps.get_authenticated] = override_authenticated
    app.dependency_overrides[deps.get_chat_service] = lambda: ChatService(repos.chats)
    app.dependency_overrides[deps.get_message_service] = lambda: MessageService(
        repos.chats, repos.messages
    )
    app.dependency_overrides[deps.get_analytics_service] = lambda: AnalyticsService(
        repos.analytics, repos.users
    )
    app.dependency_overrides[deps.get_export_service] = lambda: ExportService(
        repos.chats, repos.messages, repos.analytics
    )
    return app


@pytest_asyncio.fixture
async def client(application):
    async with AsyncClient(
        transport=ASGITransport(app=application, raise_app_exceptions=False),
        base_url="http://test",
    ) as ac:
        yield ac


class TestOperational:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")

        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["environment"] == "test"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client):
        resp = await client.get("/health", headers={"X-Request-ID": "req-42"})
        assert resp.headers["X-Request-ID"] == "req-42"

    @pytest.mark.asyncio
    async def test_metrics_endpoint(self, client):
        resp = await client.get("/metrics")

        assert resp.status_code == 200
        assert "access_decisions_total" in resp.text


class TestErrors:
    @pytest.mark.asyncio
    async def test_missing_credentials(self, client):
        resp = await client.get("/api/v1/chats")

        assert resp.status_code == 401
        assert resp.json() == {
            "message": "Authentication required",
            "code": "AUTHENTICATION_REQUIRED",
        }

    @pytest.mark.asyncio
    async def test_unknown_route(self, client, caller, user_identity):
        caller.act_as(user_identity)
        resp = await client.get("/api/v1/nothing-here")

        assert resp.status_code == 404
        assert resp.json()["code"] == "HTTP_ERROR"

    @pytest.mark.asyncio
    async def test_malformed_body(self, client, caller, user_identity):
        caller.act_as(user_identity)
        resp = await client.post("/api/v1/chats", json={"tags": ["x"]})

        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"
        assert "title" in resp.json()["message"]

    @pytest.mark.asyncio
    async def test_unexpected_failure_hides_details(self, client, caller, repos, user_identity):
        caller.act_as(user_identity)
        repos.chats.list_scoped.side_effect = RuntimeError("connection string leaked")

        resp = await client.get("/api/v1/chats")

        assert resp.status_code == 500
        assert resp.json() == {"message": "Server error", "code": "SERVER_ERROR"}


class TestChats:
    @pytest.mark.asyncio
    async def test_list_is_paginated(self, client, caller, repos, make_chat, user_identity, org):
        caller.act_as(user_identity)
        chat = make_chat(user_identity.id, org.id, tags=["billing"])
        repos.chats.list_scoped.return_value = ([chat], 6)

        resp = await client.get("/api/v1/chats", params={"page": "2", "limit": "5"})

        body = resp.json()
        assert resp.status_code == 200
        assert body["page"] == 2
        assert body["limit"] == 5
        assert body["totalPages"] == 2
        assert body["totalCount"] == 6
        assert body["data"][0]["userId"] == str(user_identity.id)
        assert body["data"][0]["tags"] == ["billing"]

    @pytest.mark.asyncio
    async def test_create(self, client, caller, repos, user_identity, org):
        caller.act_as(user_identity)
        repos.chats.create.side_effect = lambda chat: chat

        resp = await client.post("/api/v1/chats", json={"title": "Hello", "source": "api"})

        assert resp.status_code == 201
        assert resp.json()["data"]["organizationId"] == str(org.id)
        assert resp.json()["data"]["source"] == "api"

    @pytest.mark.asyncio
    async def test_body_organization_hint_is_checked(
        self, client, caller, repos, user_identity, other_org
    ):
        caller.act_as(user_identity)

        resp = await client.post(
            "/api/v1/chats", json={"title": "Hello", "organizationId": str(other_org.id)}
        )

        assert resp.status_code == 403
        assert resp.json()["code"] == "CROSS_ORG_ACCESS_DENIED"
        repos.chats.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_chat_of_another_user_is_not_found(self, client, caller, repos, user_identity):
        caller.act_as(user_identity)
        repos.chats.get_scoped.return_value = None

        resp = await client.get(f"/api/v1/chats/{uuid4()}")

        assert resp.status_code == 404
        assert resp.json()["code"] == "CHAT_NOT_FOUND"


class TestMessages:
    @pytest.mark.asyncio
    async def test_empty_batch(self, client, caller, user_identity):
        caller.act_as(user_identity)

        resp = await client.post(f"/api/v1/messages/batch/{uuid4()}", json={"messages": []})

        assert resp.status_code == 400
        assert resp.json()["message"] == "Messages array is required and must not be empty"

    @pytest.mark.asyncio
    async def test_batch(self, client, caller, repos, make_chat, user_identity, org):
        caller.act_as(user_identity)
        chat = make_chat(user_identity.id, org.id)
        repos.chats.get_scoped.return_value = chat
        repos.chats.update.side_effect = lambda c: c
        repos.messages.create_many.side_effect = lambda items: list(items)

        resp = await client.post(
            f"/api/v1/messages/batch/{chat.id}",
            json={
                "messages": [
                    {"role": "user", "content": "hi"},
                    {"role": "assistant", "content": "hello", "tokens": 12, "latency": 0.3},
                ]
            },
        )

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert [m["role"] for m in data] == ["user", "assistant"]
        assert data[1]["tokens"] == 12


class TestAnalytics:
    @pytest.mark.asyncio
    async def test_plain_user_is_forbidden(self, client, caller, repos, user_identity):
        caller.act_as(user_identity)

        resp = await client.get("/api/v1/analytics/activity")

        assert resp.status_code == 403
        assert resp.json()["code"] == "INSUFFICIENT_ROLE"
        repos.analytics.chat_activity_by_day.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_date_fails_before_any_query(self, client, caller, repos, admin_identity):
        caller.act_as(admin_identity)

        resp = await client.get("/api/v1/analytics/activity", params={"startDate": "last week"})

        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_DATE_FORMAT"
        repos.analytics.chat_activity_by_day.assert_not_called()

    @pytest.mark.asyncio
    async def test_reversed_range(self, client, caller, admin_identity):
        caller.act_as(admin_identity)

        resp = await client.get(
            "/api/v1/analytics/activity",
            params={"startDate": "2024-02-01", "endDate": "2024-01-01"},
        )

        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_DATE_RANGE"

    @pytest.mark.asyncio
    async def test_activity(self, client, caller, repos, admin_identity, org):
        caller.act_as(admin_identity)
        repos.analytics.chat_activity_by_day.return_value = [
            DailyActivity(day=date(2024, 1, 2), count=3)
        ]

        resp = await client.get(
            "/api/v1/analytics/activity",
            params={"startDate": "2024-01-01", "endDate": "2024-01-31"},
        )

        body = resp.json()
        assert resp.status_code == 200
        assert body["data"] == [{"date": "2024-01-02", "count": 3}]
        assert body["metadata"]["totalChats"] == 3
        assert body["metadata"]["totalDays"] == 31
        assert repos.analytics.chat_activity_by_day.await_args.args[0] == org.id

    @pytest.mark.asyncio
    async def test_admin_cannot_name_another_org(self, client, caller, admin_identity, other_org):
        caller.act_as(admin_identity)

        resp = await client.get(
            "/api/v1/analytics/messages/stats", params={"organizationId": str(other_org.id)}
        )

        assert resp.status_code == 403
        assert resp.json()["code"] == "CROSS_ORG_ACCESS_DENIED"

    @pytest.mark.asyncio
    async def test_superadmin_names_the_org(
        self, client, caller, repos, superadmin_identity, other_org
    ):
        caller.act_as(superadmin_identity)
        repos.analytics.chat_ids_in_window.return_value = []

        resp = await client.get(
            "/api/v1/analytics/messages/stats", params={"organizationId": str(other_org.id)}
        )

        assert resp.status_code == 200
        assert resp.json()["metadata"]["totalMessages"] == 0
        assert repos.analytics.chat_ids_in_window.await_args.args[0] == other_org.id
        repos.analytics.message_stats_by_role.assert_not_called()

    @pytest.mark.asyncio
    async def test_superadmin_without_org_context(self, client, caller, superadmin_identity):
        caller.act_as(superadmin_identity)

        resp = await client.get("/api/v1/analytics/users/top")

        assert resp.status_code == 400
        assert resp.json()["code"] == "ORG_CONTEXT_REQUIRED"

    @pytest.mark.asyncio
    async def test_top_users_unknown_metric(self, client, caller, admin_identity):
        caller.act_as(admin_identity)

        resp = await client.get("/api/v1/analytics/users/top", params={"metric": "tokens"})

        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_org_api_key_attaches_context(
        self, client, caller, repos, make_identity, other_org
    ):
        caller.act_as(make_identity(Role.SUPERADMIN), attached=other_org)
        repos.analytics.top_actors.return_value = []
        repos.users.get_many.return_value = []

        resp = await client.get("/api/v1/analytics/users/top", params={"limit": "3"})

        assert resp.status_code == 200
        assert resp.json()["metadata"]["limit"] == 3
        assert repos.analytics.top_actors.await_args.args[0] == other_org.id


class TestExports:
    @pytest.mark.asyncio
    async def test_user_activity_rows(self, client, caller, repos, admin_identity, make_user, org):
        caller.act_as(admin_identity)
        user = make_user("alice", org.id)
        repos.analytics.user_activity.return_value = [
            UserActivity(
                user_id=user.id,
                username=user.username,
                email=user.email,
                role="user",
                is_active=True,
                first_name="",
                last_name="",
                chat_count=4,
                created_at=user.created_at,
                updated_at=user.updated_at,
            )
        ]

        resp = await client.get("/api/v1/exports/users/activity")

        body = resp.json()
        assert resp.status_code == 200
        assert body["data"][0]["chatCount"] == 4
        assert body["metadata"] == {"totalUsers": 1}

    @pytest.mark.asyncio
    async def test_chats_export_requires_admin(self, client, caller, user_identity):
        caller.act_as(user_identity)

        resp = await client.get("/api/v1/exports/chats")

        assert resp.status_code == 403
