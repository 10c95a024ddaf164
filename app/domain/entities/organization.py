"""Organization entity."""

import hashlib
import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID


def generate_api_key() -> str:
    """Generate a new opaque API key (64 hex chars)."""
    return secrets.token_hex(32)


def hash_api_key(api_key: str) -> str:
    """Digest an API key for storage and lookup."""
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


@dataclass
class Organization:
    """A tenant: owns users and, transitively, all of their records."""

    id: UUID
    name: str
    api_key_hash: str
    is_active: bool = True
    settings: dict[str, Any] = field(default_factory=dict)
    contact_email: str | None = None
    description: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Organization name is required")
        self.name = self.name.strip()

    def rotate_api_key(self) -> str:
        """Replace the API key and return the new plaintext value."""
        api_key = generate_api_key()
        self.api_key_hash = hash_api_key(api_key)
        self.updated_at = datetime.now(UTC)
        return api_key

    def merge_settings(self, settings: dict[str, Any]) -> None:
        """Shallow-merge settings over the current ones."""
        self.settings = {**(self.settings or {}), **settings}
