"""Abstract interface for message persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from common.dal.models import Message


class MessageRepository(ABC):
    """Append-only message log.

    Messages are never updated or deleted once written.
    """

    @abstractmethod
    async def append(self, sender: str, recipient: str, content: str) -> Message:
        """Persist a message and return it with its assigned sequence."""
        ...

    @abstractmethod
    async def between(self, user_a: str, user_b: str) -> list[Message]:
        """Return messages exchanged by the two users in either direction, oldest first."""
        ...

    @abstractmethod
    async def counterparties(self, username: str) -> list[str]:
        """Return the distinct usernames that exchanged a message with ``username``."""
        ...
