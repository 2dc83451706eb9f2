"""SQLite-backed append-only message log."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from common.dal.message_repository import MessageRepository
from common.dal.models import Message

if TYPE_CHECKING:
    from common.db.connection import Database

_COLUMNS = "sequence, sender, recipient, content, sent_at"


class SqliteMessageRepository(MessageRepository):
    """SQLite implementation of MessageRepository.

    ``sequence`` is an AUTOINCREMENT primary key, so values are never reused
    and follow insertion order. Inserts are serialized by an asyncio lock so
    the read-back of ``lastrowid`` always belongs to the same insert.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def append(self, sender: str, recipient: str, content: str) -> Message:
        sent_at = datetime.now(tz=UTC)
        async with self._lock:
            conn = self._db.connection
            try:
                cursor = conn.execute(
                    "INSERT INTO messages (sender, recipient, content, sent_at) VALUES (?, ?, ?, ?)",
                    (sender, recipient, content, sent_at.isoformat()),
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            sequence = cursor.lastrowid
        return Message(sequence=sequence, sender=sender, recipient=recipient, content=content, sent_at=sent_at)

    async def between(self, user_a: str, user_b: str) -> list[Message]:
        rows = self._db.connection.execute(
            f"SELECT {_COLUMNS} FROM messages "  # noqa: S608 - constant column list
            "WHERE (sender = ? AND recipient = ?) OR (sender = ? AND recipient = ?) "
            "ORDER BY sequence ASC",
            (user_a, user_b, user_b, user_a),
        ).fetchall()
        return [_row_to_message(row) for row in rows]

    async def counterparties(self, username: str) -> list[str]:
        rows = self._db.connection.execute(
            "SELECT DISTINCT CASE WHEN sender = ? THEN recipient ELSE sender END "
            "FROM messages WHERE sender = ? OR recipient = ?",
            (username, username, username),
        ).fetchall()
        return [row[0] for row in rows]


def _row_to_message(row: tuple) -> Message:
    sequence, sender, recipient, content, sent_at = row
    return Message(
        sequence=sequence,
        sender=sender,
        recipient=recipient,
        content=content,
        sent_at=datetime.fromisoformat(sent_at),
    )
