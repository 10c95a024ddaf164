"""SQLAlchemy database models."""

from app.infrastructure.database.models.base import Base, TimestampMixin
from app.infrastructure.database.models.chat import ChatModel
from app.infrastructure.database.models.message import MessageModel
from app.infrastructure.database.models.organization import OrganizationModel
from app.infrastructure.database.models.user import UserModel

__all__ = [
    "Base",
    "TimestampMixin",
    # Tenancy
    "OrganizationModel",
    "UserModel",
    # Conversation log
    "ChatModel",
    "MessageModel",
]
