"""Domain entities - pure Python dataclasses representing business objects."""

from app.domain.entities.chat import CHAT_SOURCES, Chat
from app.domain.entities.message import MESSAGE_ROLES, Message
from app.domain.entities.organization import Organization, generate_api_key, hash_api_key
from app.domain.entities.user import CallerIdentity, User

__all__ = [
    "Organization",
    "User",
    "CallerIdentity",
    "Chat",
    "Message",
    "CHAT_SOURCES",
    "MESSAGE_ROLES",
    "generate_api_key",
    "hash_api_key",
]
