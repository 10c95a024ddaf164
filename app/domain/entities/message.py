"""Message entity."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID


MessageRole = Literal["system", "user", "assistant", "function", "tool"]
MESSAGE_ROLES: tuple[str, ...] = ("system", "user", "assistant", "function", "tool")


@dataclass
class Message:
    """A single logged turn of a chat."""

    id: UUID
    chat_id: UUID
    user_id: UUID
    organization_id: UUID
    role: MessageRole
    content: str

    name: str | None = None
    function_call: dict[str, Any] | None = None
    tool_calls: list[Any] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    # Usage
    tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency: float = 0

    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.role not in MESSAGE_ROLES:
            raise ValueError(f"Message role must be one of {', '.join(MESSAGE_ROLES)}")
        if self.content is None:
            raise ValueError("Message content is required")
