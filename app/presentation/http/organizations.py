"""Organizations API endpoints."""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import EmailStr, Field

from app.application.pagination import PageWindow, paginated
from app.application.services.organization_service import OrganizationService
from app.domain.entities import CallerIdentity, Organization
from app.presentation.http.deps import (
    get_identity,
    get_organization_service,
    get_page_window,
)
from app.presentation.http.schemas import CamelModel, envelope

router = APIRouter(prefix="/organizations", tags=["organizations"])


# Request/Response models
class CreateOrganizationRequest(CamelModel):
    """Request to create an organization."""

    name: str = Field(..., min_length=1, max_length=255)
    contact_email: EmailStr | None = None
    description: str = ""
    settings: dict[str, Any] = Field(default_factory=dict)


class UpdateOrganizationRequest(CamelModel):
    """Partial organization update; settings are merged."""

    name: str | None = Field(None, min_length=1, max_length=255)
    is_active: bool | None = None
    contact_email: EmailStr | None = None
    description: str | None = None
    settings: dict[str, Any] | None = None


class OrganizationResponse(CamelModel):
    """Organization response. The API key is never included."""

    id: UUID
    name: str
    is_active: bool
    settings: dict[str, Any]
    contact_email: str | None
    description: str
    created_at: datetime
    updated_at: datetime
    user_count: int | None = None


def _org_to_response(org: Organization, **extra: Any) -> dict[str, Any]:
    response = OrganizationResponse.model_validate(org).dump()
    if response.get("userCount") is None:
        response.pop("userCount", None)
    response.update(extra)
    return response


# Endpoints
@router.post("", status_code=201)
async def create_organization(
    request: CreateOrganizationRequest,
    identity: CallerIdentity = Depends(get_identity),
    service: OrganizationService = Depends(get_organization_service),
) -> dict[str, Any]:
    """Create an organization (superadmin). The API key is returned once."""
    org, api_key = await service.create(
        identity,
        request.name,
        contact_email=request.contact_email,
        description=request.description,
        settings=request.settings,
    )
    return envelope("Organization created successfully", _org_to_response(org, apiKey=api_key))


@router.get("")
async def list_organizations(
    window: PageWindow = Depends(get_page_window),
    identity: CallerIdentity = Depends(get_identity),
    service: OrganizationService = Depends(get_organization_service),
) -> dict[str, Any]:
    """List organizations by name (superadmin)."""
    orgs, total = await service.list_organizations(identity, window)
    return paginated(
        [_org_to_response(org) for org in orgs],
        total,
        window,
        "Organizations retrieved successfully",
    )


@router.get("/{organization_id}")
async def get_organization(
    organization_id: UUID,
    identity: CallerIdentity = Depends(get_identity),
    service: OrganizationService = Depends(get_organization_service),
) -> dict[str, Any]:
    """Get an organization with its user count."""
    org, user_count = await service.get(identity, organization_id)
    return envelope(
        "Organization retrieved successfully",
        _org_to_response(org, userCount=user_count),
    )


@router.put("/{organization_id}")
async def update_organization(
    organization_id: UUID,
    request: UpdateOrganizationRequest,
    identity: CallerIdentity = Depends(get_identity),
    service: OrganizationService = Depends(get_organization_service),
) -> dict[str, Any]:
    """Update an organization (its admins or a superadmin)."""
    org = await service.update(
        identity,
        organization_id,
        name=request.name,
        is_active=request.is_active,
        settings=request.settings,
        contact_email=request.contact_email,
        description=request.description,
    )
    return envelope("Organization updated successfully", _org_to_response(org))


@router.delete("/{organization_id}")
async def delete_organization(
    organization_id: UUID,
    identity: CallerIdentity = Depends(get_identity),
    service: OrganizationService = Depends(get_organization_service),
) -> dict[str, Any]:
    """Delete an organization without active users (superadmin)."""
    await service.delete(identity, organization_id)
    return envelope("Organization deleted successfully")


@router.post("/{organization_id}/regenerate-key")
async def regenerate_api_key(
    organization_id: UUID,
    identity: CallerIdentity = Depends(get_identity),
    service: OrganizationService = Depends(get_organization_service),
) -> dict[str, Any]:
    """Rotate the organization API key. The new key is returned once."""
    org, api_key = await service.rotate_api_key(identity, organization_id)
    return envelope(
        "API key regenerated successfully",
        {"id": str(org.id), "apiKey": api_key},
    )
