"""SQLite-backed user directory."""

from __future__ import annotations

import asyncio
import sqlite3
from typing import TYPE_CHECKING

from common.dal.models import User
from common.dal.user_repository import UserRepository

if TYPE_CHECKING:
    from common.db.connection import Database


class SqliteUserRepository(UserRepository):
    """SQLite implementation of UserRepository.

    Inserts run under an asyncio lock and rely on the unique indexes for
    duplicate detection; IntegrityError is mapped to ValueError.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_user(self, user: User) -> None:
        """Insert a user. Raises ValueError on duplicate id or username."""
        async with self._lock:
            conn = self._db.connection
            try:
                conn.execute("INSERT INTO users (id, username) VALUES (?, ?)", (user.user_id, user.username))
                conn.commit()
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                error_msg = str(exc).lower()
                if "users.username" in error_msg or "idx_users_username" in error_msg:
                    raise ValueError(f"Username '{user.username}' already taken") from exc
                if "users.id" in error_msg:
                    raise ValueError(f"User with id '{user.user_id}' already exists") from exc
                raise ValueError(str(exc)) from exc  # pragma: no cover

    async def get_by_username(self, username: str) -> User | None:
        row = self._db.connection.execute(
            "SELECT id, username FROM users WHERE username = ?",
            (username,),
        ).fetchone()
        return _row_to_user(row)

    async def get_by_id(self, user_id: str) -> User | None:
        row = self._db.connection.execute(
            "SELECT id, username FROM users WHERE id = ?",
            (user_id,),
        ).fetchone()
        return _row_to_user(row)

    async def list_excluding(self, username: str) -> list[User]:
        rows = self._db.connection.execute(
            "SELECT id, username FROM users WHERE username != ? ORDER BY username",
            (username,),
        ).fetchall()
        return [User(user_id=row[0], username=row[1]) for row in rows]


def _row_to_user(row: tuple[str, str] | None) -> User | None:
    if row is None:
        return None
    return User(user_id=row[0], username=row[1])
