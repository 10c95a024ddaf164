"""Caller identity resolution from request credentials."""

from dataclasses import dataclass
from uuid import UUID

from app.domain.entities import CallerIdentity, Organization, hash_api_key
from app.domain.errors import (
    AuthenticationRequiredError,
    InactiveCallerError,
    InvalidApiKeyError,
    TokenInvalidError,
)
from app.domain.protocols.repositories import OrganizationRepository, UserRepository
from app.infrastructure.auth.tokens import TokenVerifier
from app.infrastructure.telemetry.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Raw credentials presented by a request."""

    bearer_token: str | None = None
    api_key: str | None = None
    organization_api_key: str | None = None


@dataclass(frozen=True)
class Authenticated:
    identity: CallerIdentity
    attached_organization: Organization | None = None


class IdentityResolver:
    """Turns credentials into a caller identity.

    A bearer token or a user API key establishes the caller. An
    organization API key only attaches an organization and never stands in
    for a caller.
    """

    def __init__(
        self,
        users: UserRepository,
        organizations: OrganizationRepository,
        tokens: TokenVerifier,
    ):
        self.users = users
        self.organizations = organizations
        self.tokens = tokens

    async def authenticate(self, credentials: Credentials) -> Authenticated:
        """Resolve the caller.

        Raises:
            AuthenticationRequiredError: No caller credential or unknown user
            TokenExpiredError / TokenInvalidError: Bad bearer token
            InvalidApiKeyError: Unknown user or organization API key
            InactiveCallerError: The caller account is deactivated
        """
        attached = None
        if credentials.organization_api_key:
            attached = await self.organizations.get_active_by_api_key_hash(
                hash_api_key(credentials.organization_api_key)
            )
            if attached is None:
                raise InvalidApiKeyError(message="Invalid organization API key")

        if credentials.bearer_token:
            claims = await self.tokens.verify_token(credentials.bearer_token)
            user_id = _claim_user_id(claims.get("userId") or claims.get("sub"))
            user = await self.users.get_by_id(user_id)
            if user is None:
                raise AuthenticationRequiredError(message="User not found")
        elif credentials.api_key:
            user = await self.users.get_by_api_key_hash(hash_api_key(credentials.api_key))
            if user is None:
                raise InvalidApiKeyError()
        else:
            raise AuthenticationRequiredError()

        if not user.is_active:
            logger.warning("Inactive caller rejected", extra={"caller_id": str(user.id)})
            raise InactiveCallerError()

        return Authenticated(identity=user.to_identity(), attached_organization=attached)


def _claim_user_id(value: object) -> UUID:
    try:
        return UUID(str(value))
    except (ValueError, TypeError) as e:
        raise TokenInvalidError(message="Invalid token: missing subject") from e
