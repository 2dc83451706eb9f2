"""Message store: validated access to the user directory and the message log.

This is the single write path for messages. Repository failures are
converted to ``StorageError`` here so raw ``sqlite3`` exceptions never reach
the transport layer.
"""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from common.dal.models import User
from common.errors import NotFound, StorageError, ValidationFailed

if TYPE_CHECKING:
    from common.dal.message_repository import MessageRepository
    from common.dal.models import Message
    from common.dal.user_repository import UserRepository

logger = structlog.get_logger()

MAX_CONTENT_LENGTH = 2000

_SPACE_ORD = 0x20
_DEL_ORD = 0x7F
_ALLOWED_CONTROL = ("\t", "\n", "\r")


class MessageStore:
    """Coordinate user and message repositories behind domain errors."""

    def __init__(self, user_repo: UserRepository, message_repo: MessageRepository) -> None:
        self._user_repo = user_repo
        self._message_repo = message_repo

    async def append(self, sender: str, recipient: str, content: str) -> Message:
        """Validate and persist a message, returning it with its sequence."""
        if not sender:
            raise ValidationFailed("sender is required")
        if not recipient:
            raise ValidationFailed("recipient is required")
        _validate_content(content)
        try:
            message = await self._message_repo.append(sender, recipient, content)
        except sqlite3.Error as e:
            logger.exception("failed to append message", sender=sender, recipient=recipient)
            raise StorageError("Failed to store message") from e
        logger.debug("message stored", sequence=message.sequence, sender=sender, recipient=recipient)
        return message

    async def history(self, user_a: str, user_b: str) -> list[Message]:
        """Return the full thread between two users, ordered by sequence."""
        try:
            return await self._message_repo.between(user_a, user_b)
        except sqlite3.Error as e:
            logger.exception("failed to load history", user_a=user_a, user_b=user_b)
            raise StorageError("Failed to load history") from e

    async def counterparties(self, username: str) -> list[str]:
        try:
            return await self._message_repo.counterparties(username)
        except sqlite3.Error as e:
            logger.exception("failed to scan counterparties", username=username)
            raise StorageError("Failed to load contacts") from e

    async def find_or_create_user(self, username: str) -> User:
        """Return the user named ``username``, creating it on first use.

        A concurrent creator losing the race on the unique index reads back
        the winner's record instead of producing a duplicate.
        """
        if not username:
            raise ValidationFailed("username is required")
        try:
            existing = await self._user_repo.get_by_username(username)
            if existing is not None:
                return existing
            user = User(user_id=str(uuid4()), username=username)
            try:
                await self._user_repo.create_user(user)
            except ValueError:
                winner = await self._user_repo.get_by_username(username)
                if winner is None:
                    raise
                return winner
        except sqlite3.Error as e:
            logger.exception("failed to find or create user", username=username)
            raise StorageError("Failed to load user") from e
        except ValueError as e:
            logger.exception("user creation conflict", username=username)
            raise StorageError(str(e)) from e
        logger.info("user created", username=username, user_id=user.user_id)
        return user

    async def get_user(self, username: str) -> User | None:
        try:
            return await self._user_repo.get_by_username(username)
        except sqlite3.Error as e:
            logger.exception("failed to load user", username=username)
            raise StorageError("Failed to load user") from e

    async def get_user_by_id(self, user_id: str) -> User:
        """Return the user with the given opaque id, or raise NotFound."""
        try:
            user = await self._user_repo.get_by_id(user_id)
        except sqlite3.Error as e:
            logger.exception("failed to load user", user_id=user_id)
            raise StorageError("Failed to load user") from e
        if user is None:
            raise NotFound("User not found")
        return user

    async def list_users_excluding(self, username: str) -> list[User]:
        """Return every known user other than ``username``, sorted by username."""
        try:
            return await self._user_repo.list_excluding(username)
        except sqlite3.Error as e:
            logger.exception("failed to list users", username=username)
            raise StorageError("Failed to list users") from e


def _validate_content(content: str) -> None:
    if not content or not content.strip():
        raise ValidationFailed("content must not be empty")
    if len(content) > MAX_CONTENT_LENGTH:
        raise ValidationFailed(f"content must be at most {MAX_CONTENT_LENGTH} characters")
    if any((ord(c) < _SPACE_ORD and c not in _ALLOWED_CONTROL) or ord(c) == _DEL_ORD for c in content):
        raise ValidationFailed("content must not contain control characters")
