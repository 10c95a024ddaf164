"""Database infrastructure - connection, models, and session management."""

from app.infrastructure.database.connection import (
    close_db,
    get_db,
    init_db,
    ping,
)

__all__ = ["init_db", "close_db", "get_db", "ping"]
