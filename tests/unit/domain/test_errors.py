"""Tests for domain errors."""

from app.domain.errors import (
    AppError,
    AuthenticationRequiredError,
    ChatNotFoundError,
    CrossOrgAccessDeniedError,
    DatabaseError,
    DuplicateOrganizationError,
    InvalidDateFormatError,
    OrgContextRequiredError,
    TokenExpiredError,
    ValidationError,
)


class TestAppError:
    """Test base AppError."""

    def test_error_creation(self):
        """Test creating an error."""
        error = AppError(
            code="TEST_ERROR",
            message="Test error message",
            details={"key": "value"},
        )

        assert error.code == "TEST_ERROR"
        assert error.message == "Test error message"
        assert error.details == {"key": "value"}
        assert error.timestamp is not None
        assert error.status_code == 500

    def test_error_str(self):
        """Test error string representation."""
        error = AppError(code="TEST", message="Test message")
        assert str(error) == "[TEST] Test message"

    def test_error_to_dict(self):
        """Test error serialization."""
        d = ValidationError(details={"field": "title"}).to_dict()

        assert d["code"] == "VALIDATION_ERROR"
        assert d["details"] == {"field": "title"}
        assert d["status_code"] == 400
        assert "timestamp" in d


class TestStatusCodes:
    """Each family maps onto one HTTP status."""

    def test_authentication_family(self):
        assert AuthenticationRequiredError.status_code == 401
        assert TokenExpiredError().status_code == 401
        assert TokenExpiredError().code == "TOKEN_EXPIRED"

    def test_access_denied_family(self):
        error = CrossOrgAccessDeniedError()
        assert error.status_code == 403
        assert error.code == "CROSS_ORG_ACCESS_DENIED"

    def test_validation_family(self):
        assert OrgContextRequiredError().status_code == 400
        assert InvalidDateFormatError().status_code == 400

    def test_not_found_and_conflict(self):
        assert ChatNotFoundError().status_code == 404
        assert DuplicateOrganizationError().status_code == 409

    def test_server_errors(self):
        assert DatabaseError(operation="create").status_code == 500

    def test_default_message_can_be_overridden(self):
        error = ChatNotFoundError(message="Chat not found or access denied")
        assert error.message == "Chat not found or access denied"
        assert error.code == "CHAT_NOT_FOUND"
