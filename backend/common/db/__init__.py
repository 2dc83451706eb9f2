"""SQLite database layer: connection management and repository implementations."""

from common.db.connection import Database
from common.db.message_repository import SqliteMessageRepository
from common.db.user_repository import SqliteUserRepository

__all__ = [
    "Database",
    "SqliteMessageRepository",
    "SqliteUserRepository",
]
