"""Repository implementations."""

from app.infrastructure.repositories.analytics_repository import AnalyticsRepositoryImpl
from app.infrastructure.repositories.base import BaseRepository, OrgScopedRepository
from app.infrastructure.repositories.chat_repository import ChatRepositoryImpl
from app.infrastructure.repositories.message_repository import MessageRepositoryImpl
from app.infrastructure.repositories.organization_repository import (
    OrganizationRepositoryImpl,
)
from app.infrastructure.repositories.user_repository import UserRepositoryImpl

__all__ = [
    "BaseRepository",
    "OrgScopedRepository",
    "AnalyticsRepositoryImpl",
    "ChatRepositoryImpl",
    "MessageRepositoryImpl",
    "OrganizationRepositoryImpl",
    "UserRepositoryImpl",
]
