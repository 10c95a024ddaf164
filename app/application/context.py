"""Per-request context threaded through the services."""

from dataclasses import dataclass
from uuid import UUID

from app.application.aggregation import AggregationWindow
from app.application.pagination import PageWindow, paginate
from app.domain.entities import CallerIdentity, Organization
from app.domain.scope import QueryScope


@dataclass(frozen=True)
class RequestContext:
    """Caller, organization and normalized inputs of one request.

    Built once by the HTTP layer and passed by parameter; never mutated.
    """

    identity: CallerIdentity
    organization: Organization
    pagination: PageWindow = paginate(None, None)
    window: AggregationWindow | None = None
    requested_organization_id: UUID | None = None

    @property
    def organization_id(self) -> UUID:
        return self.organization.id

    @property
    def scope(self) -> QueryScope:
        return QueryScope.for_caller(self.identity, self.organization.id)
