"""Access policy engine.

One place decides whether a caller may perform an operation against an
organization (and optionally a record owned by a user). Rules run in order
and the first failing rule determines the denial:

1. inactive callers are unauthenticated
2. the caller's role must reach the operation's floor
3. non-superadmins stay inside their home organization
4. identity-scoped operations require the owner, an admin of the owner's
   organization, or a superadmin
5. only superadmins may grant the superadmin role
6. admins may not deactivate their own organization
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID

from app.domain.entities import CallerIdentity
from app.domain.errors import (
    AppError,
    CrossOrgAccessDeniedError,
    InactiveCallerError,
    InsufficientRoleError,
    NotOwnerError,
    PrivilegeEscalationError,
    SelfDeactivationError,
)
from app.domain.roles import Role, at_least
from app.infrastructure.telemetry import get_logger, record_access_decision

if TYPE_CHECKING:
    from app.application.context import RequestContext

logger = get_logger(__name__)


class Operation(StrEnum):
    """Every guarded operation, each with a minimum role."""

    CHAT_CREATE = "chat.create"
    CHAT_LIST = "chat.list"
    CHAT_SEARCH = "chat.search"
    CHAT_READ = "chat.read"
    CHAT_UPDATE = "chat.update"
    CHAT_DELETE = "chat.delete"

    MESSAGE_ADD = "message.add"
    MESSAGE_BATCH = "message.batch"
    MESSAGE_LIST = "message.list"
    MESSAGE_READ = "message.read"
    MESSAGE_UPDATE = "message.update"
    MESSAGE_DELETE = "message.delete"

    PROFILE_READ = "profile.read"
    PROFILE_ROTATE_KEY = "profile.rotate_key"
    USER_READ = "user.read"
    USER_UPDATE = "user.update"
    USER_MANAGE = "user.manage"
    USER_LIST = "user.list"
    USER_SEARCH = "user.search"
    USER_CREATE_PRIVILEGED = "user.create_privileged"

    ORG_CREATE = "organization.create"
    ORG_LIST = "organization.list"
    ORG_READ = "organization.read"
    ORG_UPDATE = "organization.update"
    ORG_ROTATE_KEY = "organization.rotate_key"
    ORG_DELETE = "organization.delete"

    ANALYTICS_READ = "analytics.read"
    EXPORT_READ = "export.read"

    @property
    def floor(self) -> Role:
        return _FLOORS.get(self, Role.USER)


_FLOORS = {
    Operation.USER_MANAGE: Role.ADMIN,
    Operation.USER_LIST: Role.ADMIN,
    Operation.USER_SEARCH: Role.ADMIN,
    Operation.USER_CREATE_PRIVILEGED: Role.SUPERADMIN,
    Operation.ORG_CREATE: Role.SUPERADMIN,
    Operation.ORG_LIST: Role.SUPERADMIN,
    Operation.ORG_DELETE: Role.SUPERADMIN,
    Operation.ORG_UPDATE: Role.ADMIN,
    Operation.ORG_ROTATE_KEY: Role.ADMIN,
    Operation.ANALYTICS_READ: Role.ADMIN,
    Operation.EXPORT_READ: Role.ADMIN,
}


@dataclass(frozen=True)
class ResourceOwner:
    """Owner of an identity-scoped record."""

    user_id: UUID
    organization_id: UUID | None


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    error: type[AppError] | None = None

    @property
    def reason(self) -> str | None:
        return self.error.code if self.error is not None else None

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, error: type[AppError]) -> "AccessDecision":
        return cls(allowed=False, error=error)


class AccessPolicy:
    """Evaluates the ordered access rules. Stateless."""

    def evaluate(
        self,
        identity: CallerIdentity,
        organization_id: UUID | None,
        operation: Operation,
        *,
        owner: ResourceOwner | None = None,
        requested_role: Role | str | None = None,
        requested_organization_id: UUID | None = None,
        deactivate: bool = False,
    ) -> AccessDecision:
        if not identity.is_active:
            return AccessDecision.deny(InactiveCallerError)

        if not at_least(identity.role, operation.floor):
            return AccessDecision.deny(InsufficientRoleError)

        if not identity.is_superadmin:
            home = identity.organization_id
            for target in (organization_id, requested_organization_id):
                if target is not None and target != home:
                    return AccessDecision.deny(CrossOrgAccessDeniedError)

        if owner is not None and not self._may_act_for(identity, owner):
            return AccessDecision.deny(NotOwnerError)

        if requested_role is not None and not identity.is_superadmin:
            if Role.parse(requested_role) is Role.SUPERADMIN:
                return AccessDecision.deny(PrivilegeEscalationError)

        if deactivate and not identity.is_superadmin:
            if organization_id is not None and organization_id == identity.organization_id:
                return AccessDecision.deny(SelfDeactivationError)

        return AccessDecision.allow()

    def enforce(
        self,
        identity: CallerIdentity,
        organization_id: UUID | None,
        operation: Operation,
        **kwargs,
    ) -> None:
        """Evaluate and raise the typed error on denial."""
        decision = self.evaluate(identity, organization_id, operation, **kwargs)
        record_access_decision(operation.value, decision.allowed, decision.reason)
        if decision.allowed:
            return

        logger.warning(
            "Access denied",
            extra={
                "operation": operation.value,
                "reason": decision.reason,
                "caller_id": str(identity.id),
                "caller_role": identity.role.value,
                "organization_id": str(organization_id) if organization_id else None,
            },
        )
        raise decision.error(details={"operation": operation.value})

    def authorize(self, ctx: "RequestContext", operation: Operation, **kwargs) -> None:
        """Enforce against a request context and any organization id it named."""
        self.enforce(
            ctx.identity,
            ctx.organization_id,
            operation,
            requested_organization_id=ctx.requested_organization_id,
            **kwargs,
        )

    @staticmethod
    def _may_act_for(identity: CallerIdentity, owner: ResourceOwner) -> bool:
        if identity.is_superadmin or owner.user_id == identity.id:
            return True
        return (
            at_least(identity.role, Role.ADMIN)
            and owner.organization_id is not None
            and owner.organization_id == identity.organization_id
        )


access_policy = AccessPolicy()
