"""Role hierarchy shared by every access check."""

from enum import StrEnum


class Role(StrEnum):
    """Caller permission level, totally ordered user < admin < superadmin."""

    USER = "user"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def parse(cls, value: "str | Role") -> "Role":
        """Parse a stored or requested role name.

        Raises:
            ValueError: If the value is not a known role
        """
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise ValueError(f"Unknown role: {value!r}") from e


_RANKS = {
    Role.USER: 0,
    Role.ADMIN: 1,
    Role.SUPERADMIN: 2,
}


def at_least(role: Role, floor: Role) -> bool:
    """Check that `role` is at or above `floor` in the hierarchy."""
    return role.rank >= floor.rank
