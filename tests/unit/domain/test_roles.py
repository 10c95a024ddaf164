"""Tests for the role hierarchy."""

import pytest

from app.domain.roles import Role, at_least


class TestRole:
    """Test Role ordering and parsing."""

    def test_hierarchy_is_totally_ordered(self):
        assert Role.USER.rank < Role.ADMIN.rank < Role.SUPERADMIN.rank

    @pytest.mark.parametrize(
        "role,floor,expected",
        [
            (Role.USER, Role.USER, True),
            (Role.USER, Role.ADMIN, False),
            (Role.ADMIN, Role.USER, True),
            (Role.ADMIN, Role.SUPERADMIN, False),
            (Role.SUPERADMIN, Role.ADMIN, True),
        ],
    )
    def test_at_least(self, role, floor, expected):
        assert at_least(role, floor) is expected

    def test_parse_is_case_insensitive(self):
        assert Role.parse(" Admin ") is Role.ADMIN

    def test_parse_passes_roles_through(self):
        assert Role.parse(Role.SUPERADMIN) is Role.SUPERADMIN

    def test_parse_unknown_role(self):
        with pytest.raises(ValueError, match="Unknown role"):
            Role.parse("owner")
