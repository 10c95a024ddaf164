"""FastAPI dependencies: caller identity, request context and services."""

import json
from typing import Any

from fastapi import Depends, Query, Request
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.aggregation import AggregationWindow, parse_window
from app.application.context import RequestContext
from app.application.org_context import (
    OrganizationContextResolver,
    OrgHints,
    explicit_organization_id,
)
from app.application.pagination import PageWindow, paginate
from app.application.services.analytics_service import AnalyticsService
from app.application.services.chat_service import ChatService
from app.application.services.export_service import ExportService
from app.application.services.message_service import MessageService
from app.application.services.organization_service import OrganizationService
from app.application.services.user_service import UserService
from app.config import Settings, get_settings
from app.domain.entities import CallerIdentity
from app.infrastructure.auth import (
    Authenticated,
    Credentials,
    IdentityResolver,
    TokenVerifier,
    get_token_verifier,
)
from app.infrastructure.database.connection import get_db
from app.infrastructure.repositories import OrganizationRepositoryImpl, UserRepositoryImpl
from app.infrastructure.telemetry import set_request_context

bearer_scheme = HTTPBearer(auto_error=False)
api_key_scheme = APIKeyHeader(name="X-API-Key", auto_error=False)
org_api_key_scheme = APIKeyHeader(name="X-Organization-API-Key", auto_error=False)


# --- Identity ---


async def get_credentials(
    bearer: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    api_key: str | None = Depends(api_key_scheme),
    organization_api_key: str | None = Depends(org_api_key_scheme),
) -> Credentials:
    return Credentials(
        bearer_token=bearer.credentials if bearer else None,
        api_key=api_key,
        organization_api_key=organization_api_key,
    )


async def get_authenticated(
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
    tokens: TokenVerifier = Depends(get_token_verifier),
) -> Authenticated:
    """Resolve the caller; every API route requires one."""
    resolver = IdentityResolver(UserRepositoryImpl(db), OrganizationRepositoryImpl(db), tokens)
    authenticated = await resolver.authenticate(credentials)
    set_request_context(user_id=str(authenticated.identity.id))
    return authenticated


async def get_identity(
    authenticated: Authenticated = Depends(get_authenticated),
) -> CallerIdentity:
    return authenticated.identity


# --- Request inputs ---


async def get_org_hints(
    request: Request,
    organization_id: str | None = Query(None, alias="organizationId"),
) -> OrgHints:
    """Collect explicit organization ids from query, JSON body and path."""
    body_hint = None
    if request.method in ("POST", "PUT", "PATCH"):
        try:
            body: Any = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = None
        if isinstance(body, dict) and body.get("organizationId") is not None:
            body_hint = str(body["organizationId"])

    return OrgHints(
        query=organization_id,
        body=body_hint,
        path=request.path_params.get("organization_id"),
    )


async def get_page_window(
    page: str | None = Query(None),
    limit: str | None = Query(None),
    settings: Settings = Depends(get_settings),
) -> PageWindow:
    return paginate(
        page,
        limit,
        default_limit=settings.pagination_default_limit,
        max_limit=settings.pagination_max_limit,
    )


async def get_aggregation_window(
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    settings: Settings = Depends(get_settings),
) -> AggregationWindow:
    """Window for analytics, defaulting to the trailing period."""
    return parse_window(
        start_date, end_date, default_days=settings.analytics_default_window_days
    )


async def get_optional_window(
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    settings: Settings = Depends(get_settings),
) -> AggregationWindow | None:
    """Window for exports; unbounded unless a date is given."""
    if not start_date and not end_date:
        return None
    return parse_window(
        start_date, end_date, default_days=settings.analytics_default_window_days
    )


# --- Request context ---


async def _build_context(
    authenticated: Authenticated,
    hints: OrgHints,
    pagination: PageWindow,
    window: AggregationWindow | None,
    db: AsyncSession,
) -> RequestContext:
    resolver = OrganizationContextResolver(OrganizationRepositoryImpl(db))
    organization = await resolver.resolve(
        authenticated.identity, hints, authenticated.attached_organization
    )
    set_request_context(org_id=str(organization.id))
    return RequestContext(
        identity=authenticated.identity,
        organization=organization,
        pagination=pagination,
        window=window,
        requested_organization_id=explicit_organization_id(hints),
    )


async def get_request_context(
    pagination: PageWindow = Depends(get_page_window),
    hints: OrgHints = Depends(get_org_hints),
    authenticated: Authenticated = Depends(get_authenticated),
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    return await _build_context(authenticated, hints, pagination, None, db)


async def get_analytics_context(
    window: AggregationWindow = Depends(get_aggregation_window),
    hints: OrgHints = Depends(get_org_hints),
    authenticated: Authenticated = Depends(get_authenticated),
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    # The window is declared first so malformed dates fail before any query
    return await _build_context(authenticated, hints, paginate(None, None), window, db)


async def get_export_context(
    window: AggregationWindow | None = Depends(get_optional_window),
    hints: OrgHints = Depends(get_org_hints),
    authenticated: Authenticated = Depends(get_authenticated),
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    return await _build_context(authenticated, hints, paginate(None, None), window, db)


# --- Services ---


def get_organization_service(db: AsyncSession = Depends(get_db)) -> OrganizationService:
    return OrganizationService.from_session(db)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService.from_session(db)


def get_chat_service(db: AsyncSession = Depends(get_db)) -> ChatService:
    return ChatService.from_session(db)


def get_message_service(db: AsyncSession = Depends(get_db)) -> MessageService:
    return MessageService.from_session(db)


def get_analytics_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AnalyticsService:
    return AnalyticsService.from_session(
        db,
        top_default=settings.analytics_top_default,
        top_max=settings.analytics_top_max,
    )


def get_export_service(db: AsyncSession = Depends(get_db)) -> ExportService:
    return ExportService.from_session(db)
