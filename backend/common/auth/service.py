"""Identity service: enrollment and credential verification."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from common.auth.credential import create_credential, decode_credential
from common.errors import Unauthenticated, ValidationFailed

if TYPE_CHECKING:
    from common.store import MessageStore

logger = structlog.get_logger()

USERNAME_MAX_LENGTH = 30
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class IdentityService:
    """Issue and verify signed session credentials.

    Stateless apart from the user directory: verification needs only the
    secret, so the live channel can authorize without touching the store.
    """

    def __init__(self, store: MessageStore, *, credential_secret: str) -> None:
        self._store = store
        self._secret = credential_secret

    async def issue(self, username: str) -> str:
        """Find or create ``username`` and return a credential valid for 24 hours."""
        username = normalize_username(username)
        user = await self._store.find_or_create_user(username)
        logger.info("credential issued", username=user.username)
        return create_credential(user.username, self._secret)

    def verify(self, token: str | None, *, now: float | None = None) -> str:
        """Return the username bound to ``token`` or raise Unauthenticated."""
        if not token:
            raise Unauthenticated("Authentication required")
        credential = decode_credential(token, self._secret, now=now)
        if credential is None:
            raise Unauthenticated("Authentication required")
        return credential.username


def normalize_username(username: str) -> str:
    """Strip surrounding whitespace and enforce the username rules."""
    username = username.strip()
    if not username:
        raise ValidationFailed("Username is required")
    if len(username) > USERNAME_MAX_LENGTH:
        raise ValidationFailed(f"Username must be at most {USERNAME_MAX_LENGTH} characters")
    if not USERNAME_PATTERN.match(username):
        raise ValidationFailed("Username may contain only letters, numbers, '_', '-' and '.'")
    return username
