"""Typed error hierarchy for the chatlogger API.

All application errors inherit from AppError and provide:
- code: Machine-readable error code
- message: Human-readable description
- details: Additional context as dict (logged, never returned for 5xx)
- status_code: HTTP status the error maps to at the API boundary
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar


@dataclass
class AppError(Exception):
    """Base application error with full context."""

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    status_code: ClassVar[int] = 500

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for logging."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "status_code": self.status_code,
            "timestamp": self.timestamp.isoformat(),
        }


# --- Authentication Errors (401) ---


@dataclass
class AuthenticationRequiredError(AppError):
    """No usable credential, or the credential does not resolve to a caller."""

    code: str = "AUTHENTICATION_REQUIRED"
    message: str = "Authentication required"

    status_code: ClassVar[int] = 401


@dataclass
class TokenExpiredError(AuthenticationRequiredError):
    """Bearer token has expired."""

    code: str = "TOKEN_EXPIRED"
    message: str = "Token has expired"


@dataclass
class TokenInvalidError(AuthenticationRequiredError):
    """Bearer token is malformed or fails verification."""

    code: str = "TOKEN_INVALID"
    message: str = "Invalid or expired token"


@dataclass
class InvalidApiKeyError(AuthenticationRequiredError):
    """API key does not match any active caller or organization."""

    code: str = "INVALID_API_KEY"
    message: str = "Invalid API key"


@dataclass
class InactiveCallerError(AuthenticationRequiredError):
    """Caller account has been deactivated."""

    code: str = "CALLER_INACTIVE"
    message: str = "Account is inactive"


# --- Access Denied Errors (403) ---


@dataclass
class AccessDeniedError(AppError):
    """Resolved identity or organization fails an access rule."""

    code: str = "ACCESS_DENIED"
    message: str = "Access denied"

    status_code: ClassVar[int] = 403


@dataclass
class InsufficientRoleError(AccessDeniedError):
    """Caller role is below the operation's floor."""

    code: str = "INSUFFICIENT_ROLE"
    message: str = "Access denied: insufficient privileges"


@dataclass
class CrossOrgAccessDeniedError(AccessDeniedError):
    """Non-superadmin caller targeted an organization other than its own."""

    code: str = "CROSS_ORG_ACCESS_DENIED"
    message: str = "Access denied: organization mismatch"


@dataclass
class NotOwnerError(AccessDeniedError):
    """Caller is neither the owner nor an admin of the owner's organization."""

    code: str = "NOT_OWNER"
    message: str = "Access denied: you can only access your own records"


@dataclass
class PrivilegeEscalationError(AccessDeniedError):
    """Only superadmins may create or promote superadmins."""

    code: str = "PRIVILEGE_ESCALATION"
    message: str = "Access denied: only superadmins can grant the superadmin role"


@dataclass
class SelfDeactivationError(AccessDeniedError):
    """Admins may not deactivate the organization they administer."""

    code: str = "SELF_DEACTIVATION"
    message: str = "Admins cannot deactivate their own organization"


# --- Validation Errors (400) ---


@dataclass
class ValidationError(AppError):
    """Malformed or ambiguous input detected before store access."""

    code: str = "VALIDATION_ERROR"
    message: str = "Invalid request"

    status_code: ClassVar[int] = 400


@dataclass
class OrgContextRequiredError(ValidationError):
    """No single organization could be determined for the request."""

    code: str = "ORG_CONTEXT_REQUIRED"
    message: str = "Could not determine organization for the request"


@dataclass
class InvalidDateFormatError(ValidationError):
    """A date bound could not be parsed."""

    code: str = "INVALID_DATE_FORMAT"
    message: str = "Invalid date format"


@dataclass
class InvalidDateRangeError(ValidationError):
    """Start date falls after end date."""

    code: str = "INVALID_DATE_RANGE"
    message: str = "startDate must not be after endDate"


@dataclass
class InvalidRoleError(ValidationError):
    """Role value is unknown or not allowed for the operation."""

    code: str = "INVALID_ROLE"
    message: str = "Invalid role"


@dataclass
class OrganizationInUseError(ValidationError):
    """Organization still owns active users and cannot be deleted."""

    code: str = "ORGANIZATION_IN_USE"
    message: str = "Organization still has active users"


# --- Not Found Errors (404) ---


@dataclass
class NotFoundError(AppError):
    """Resource not found, or outside the caller's visible tenancy."""

    code: str = "NOT_FOUND"
    message: str = "Resource not found"

    status_code: ClassVar[int] = 404


@dataclass
class OrganizationNotFoundError(NotFoundError):
    """Organization not found or inactive."""

    code: str = "ORGANIZATION_NOT_FOUND"
    message: str = "Organization not found"


@dataclass
class UserNotFoundError(NotFoundError):
    """User not found."""

    code: str = "USER_NOT_FOUND"
    message: str = "User not found"


@dataclass
class ChatNotFoundError(NotFoundError):
    """Chat not found."""

    code: str = "CHAT_NOT_FOUND"
    message: str = "Chat not found"


@dataclass
class MessageNotFoundError(NotFoundError):
    """Message not found."""

    code: str = "MESSAGE_NOT_FOUND"
    message: str = "Message not found"


# --- Conflict Errors (409) ---


@dataclass
class ConflictError(AppError):
    """Uniqueness violation, from a pre-check or the store's constraint."""

    code: str = "CONFLICT"
    message: str = "Resource already exists"

    status_code: ClassVar[int] = 409


@dataclass
class DuplicateOrganizationError(ConflictError):
    """Organization name already taken."""

    code: str = "DUPLICATE_ORGANIZATION"
    message: str = "Organization name already exists"


@dataclass
class DuplicateUserError(ConflictError):
    """Username or email already taken."""

    code: str = "DUPLICATE_USER"
    message: str = "User with this email or username already exists"


# --- Server Errors (500) ---


@dataclass
class DatabaseError(AppError):
    """Store operation failed unexpectedly."""

    code: str = "DATABASE_ERROR"
    message: str = "Database operation failed"
    operation: str = ""
