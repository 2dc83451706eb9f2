"""Contact graph: who a user has exchanged messages with.

Derived from the message log on every call; there is no maintained index.
If conversation counts grow, a reverse-adjacency table written alongside
``MessageStore.append`` is the place to add one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from common.errors import StorageError

if TYPE_CHECKING:
    from common.dal.models import User
    from common.store import MessageStore

logger = structlog.get_logger()


class ContactGraph:
    def __init__(self, store: MessageStore) -> None:
        self._store = store

    async def contacts_of(self, username: str) -> set[str]:
        """Return the distinct counterparties of ``username``, never including itself."""
        counterparties = await self._store.counterparties(username)
        return {name for name in counterparties if name != username}

    async def contact_users(self, username: str) -> list[User]:
        """Resolve each contact to its directory record, sorted by username.

        Lookups are best effort: a contact whose record is missing or whose
        lookup fails is logged and skipped.
        """
        users: list[User] = []
        for name in sorted(await self.contacts_of(username)):
            try:
                user = await self._store.get_user(name)
            except StorageError:
                logger.warning("skipping contact after failed lookup", username=username, contact=name)
                continue
            if user is None:
                logger.info("skipping contact without user record", username=username, contact=name)
                continue
            users.append(user)
        return users
