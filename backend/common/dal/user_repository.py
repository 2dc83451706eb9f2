"""Abstract interface for the user directory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from common.dal.models import User


class UserRepository(ABC):
    """Abstract interface for user persistence.

    ``create_user`` must raise ValueError when the username or id is
    already taken; callers rely on that to resolve creation races.
    """

    @abstractmethod
    async def create_user(self, user: User) -> None: ...

    @abstractmethod
    async def get_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    async def get_by_id(self, user_id: str) -> User | None: ...

    @abstractmethod
    async def list_excluding(self, username: str) -> list[User]: ...
