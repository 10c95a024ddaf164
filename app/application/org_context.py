"""Organization context resolution.

A request always operates against exactly one organization. The order is:

1. the organization attached by organization-level API key authentication
2. for users and admins, their home organization (explicit hints are
   ignored here and checked by the access policy instead)
3. for superadmins, an explicit id from the query, then the body, then the
   path, falling back to their home organization when one is set

`resolve_organization_id` is pure; `OrganizationContextResolver` adds the
store lookup and turns the outcome into an Organization or a typed error.
"""

from dataclasses import dataclass
from uuid import UUID

from app.domain.entities import CallerIdentity, Organization
from app.domain.errors import OrganizationNotFoundError, OrgContextRequiredError
from app.domain.protocols.repositories import OrganizationRepository
from app.infrastructure.telemetry import get_logger, record_org_context

logger = get_logger(__name__)

EXPLICIT_SOURCES = ("query", "body", "path")


@dataclass(frozen=True)
class OrgHints:
    """Raw, unvalidated organization ids named by the request."""

    query: str | None = None
    body: str | None = None
    path: str | None = None

    def explicit(self) -> list[tuple[str, str]]:
        """Non-empty hints in precedence order as (source, raw value)."""
        hints = []
        for source in EXPLICIT_SOURCES:
            raw = getattr(self, source)
            if raw is not None and str(raw).strip():
                hints.append((source, str(raw).strip()))
        return hints


@dataclass(frozen=True)
class Resolved:
    organization_id: UUID
    source: str


@dataclass(frozen=True)
class Ambiguous:
    reason: str


@dataclass(frozen=True)
class Missing:
    pass


OrgResolution = Resolved | Ambiguous | Missing


def _parse_uuid(raw: str) -> UUID | None:
    try:
        return UUID(raw)
    except (ValueError, TypeError, AttributeError):
        return None


def explicit_organization_id(hints: OrgHints) -> UUID | None:
    """First well-formed explicit organization id, if any."""
    for _, raw in hints.explicit():
        org_id = _parse_uuid(raw)
        if org_id is not None:
            return org_id
    return None


def resolve_organization_id(
    identity: CallerIdentity,
    hints: OrgHints,
    attached_org_id: UUID | None = None,
) -> OrgResolution:
    """Decide which organization a request operates against. No I/O.

    A superadmin naming no organization falls back to its home
    organization when it has one, and is `Missing` only without one.
    """
    if attached_org_id is not None:
        return Resolved(attached_org_id, "api_key")

    if not identity.is_superadmin:
        if identity.organization_id is None:
            return Missing()
        return Resolved(identity.organization_id, "home")

    explicit = hints.explicit()
    if explicit:
        source, raw = explicit[0]
        org_id = _parse_uuid(raw)
        if org_id is None:
            return Ambiguous(f"Malformed organization id in {source}")
        return Resolved(org_id, source)

    if identity.organization_id is not None:
        return Resolved(identity.organization_id, "home")
    return Missing()


class OrganizationContextResolver:
    """Resolves and loads the organization a request operates against."""

    def __init__(self, organizations: OrganizationRepository):
        self.organizations = organizations

    async def resolve(
        self,
        identity: CallerIdentity,
        hints: OrgHints,
        attached: Organization | None = None,
    ) -> Organization:
        """Resolve to an active organization.

        Raises:
            OrgContextRequiredError: No single organization could be determined
            OrganizationNotFoundError: The organization is unknown or inactive
        """
        resolution = resolve_organization_id(
            identity, hints, attached.id if attached is not None else None
        )

        match resolution:
            case Missing():
                record_org_context("missing")
                raise OrgContextRequiredError(details={"caller_id": str(identity.id)})
            case Ambiguous(reason=reason):
                record_org_context("ambiguous")
                raise OrgContextRequiredError(message=reason)
            case Resolved(organization_id=org_id, source=source):
                record_org_context(source)

        if attached is not None and attached.id == org_id:
            return attached

        org = await self.organizations.get_by_id(org_id)
        if org is None or not org.is_active:
            logger.info(
                "Organization context not found",
                extra={"organization_id": str(org_id), "source": source},
            )
            raise OrganizationNotFoundError(details={"organization_id": str(org_id)})
        return org
