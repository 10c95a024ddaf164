"""Domain protocols - abstract interfaces for infrastructure implementations."""

from app.domain.protocols.repositories import (
    ActivityMetric,
    AnalyticsRepository,
    ChatRepository,
    MessageRepository,
    OrganizationRepository,
    UserRepository,
)

__all__ = [
    "ActivityMetric",
    "AnalyticsRepository",
    "ChatRepository",
    "MessageRepository",
    "OrganizationRepository",
    "UserRepository",
]
