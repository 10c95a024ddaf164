"""Users API endpoints."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import EmailStr, Field

from app.application.context import RequestContext
from app.application.pagination import paginated
from app.application.services.user_service import UserService
from app.domain.entities import CallerIdentity, User
from app.presentation.http.deps import get_identity, get_request_context, get_user_service
from app.presentation.http.schemas import CamelModel, envelope

router = APIRouter(prefix="/users", tags=["users"])


# Request/Response models
class UpdateUserRequest(CamelModel):
    """Partial user update. Role and active flag need admin rights."""

    username: str | None = Field(None, min_length=3, max_length=100)
    email: EmailStr | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    role: str | None = None
    is_active: bool | None = None


class CreatePrivilegedUserRequest(CamelModel):
    """Request to create an admin or superadmin."""

    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    role: str = "admin"
    organization_id: UUID | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)


class UserResponse(CamelModel):
    """User response. API key digests are never included."""

    id: UUID
    username: str
    email: str
    role: str
    organization_id: UUID | None
    is_active: bool
    first_name: str | None
    last_name: str | None
    created_at: datetime
    updated_at: datetime


def _user_to_response(user: User) -> dict[str, Any]:
    return UserResponse.model_validate(user).dump()


# Endpoints
@router.get("/profile")
async def get_profile(
    identity: CallerIdentity = Depends(get_identity),
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """Get the caller's own profile."""
    user = await service.profile(identity)
    return envelope("Profile retrieved successfully", _user_to_response(user))


@router.get("/organization-users")
async def list_organization_users(
    role: str | None = Query(None),
    is_active: bool | None = Query(None, alias="isActive"),
    ctx: RequestContext = Depends(get_request_context),
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """List users of the organization (admin)."""
    users, total = await service.list_in_organization(ctx, role=role, is_active=is_active)
    return paginated(
        [_user_to_response(user) for user in users],
        total,
        ctx.pagination,
        "Users retrieved successfully",
    )


@router.get("/search")
async def search_users(
    username: str | None = Query(None),
    email: str | None = Query(None),
    role: str | None = Query(None),
    is_active: bool | None = Query(None, alias="isActive"),
    sort_by: str = Query("username", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    ctx: RequestContext = Depends(get_request_context),
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """Search users of the organization (admin)."""
    users, total = await service.search(
        ctx,
        username=username,
        email=email,
        role=role,
        is_active=is_active,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return paginated(
        [_user_to_response(user) for user in users],
        total,
        ctx.pagination,
        "Users retrieved successfully",
    )


@router.post("/generate-api-key")
async def generate_api_key(
    identity: CallerIdentity = Depends(get_identity),
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """Issue a new personal API key for the caller, replacing the previous one."""
    api_key = await service.rotate_api_key(identity)
    return envelope("API key generated successfully", {"apiKey": api_key})


@router.post("/admin", status_code=201)
async def create_privileged_user(
    request: CreatePrivilegedUserRequest,
    identity: CallerIdentity = Depends(get_identity),
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """Create an admin or superadmin (superadmin). The API key is returned once."""
    user, api_key = await service.create_privileged(
        identity,
        username=request.username,
        email=request.email,
        role=request.role,
        organization_id=request.organization_id,
        first_name=request.first_name,
        last_name=request.last_name,
    )
    return envelope(
        "User created successfully",
        {**_user_to_response(user), "apiKey": api_key},
    )


@router.get("/{user_id}")
async def get_user(
    user_id: UUID,
    identity: CallerIdentity = Depends(get_identity),
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """Get a user (self, or any user of the caller's organization for admins)."""
    user = await service.get(identity, user_id)
    return envelope("User retrieved successfully", _user_to_response(user))


@router.put("/{user_id}")
async def update_user(
    user_id: UUID,
    request: UpdateUserRequest,
    identity: CallerIdentity = Depends(get_identity),
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """Update a user."""
    user = await service.update(
        identity,
        user_id,
        username=request.username,
        email=request.email,
        first_name=request.first_name,
        last_name=request.last_name,
        role=request.role,
        is_active=request.is_active,
    )
    return envelope("User updated successfully", _user_to_response(user))
