"""Chat entity."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID


ChatSource = Literal["web", "mobile", "api", "widget"]
CHAT_SOURCES: tuple[str, ...] = ("web", "mobile", "api", "widget")


@dataclass
class Chat:
    """A conversation owned by one user inside one organization."""

    id: UUID
    user_id: UUID
    organization_id: UUID
    title: str
    source: ChatSource = "web"
    tags: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("Chat title is required")
        self.title = self.title.strip()
        if self.source not in CHAT_SOURCES:
            raise ValueError(f"Chat source must be one of {', '.join(CHAT_SOURCES)}")

    def touch(self) -> None:
        """Record activity on the chat."""
        self.updated_at = datetime.now(UTC)
