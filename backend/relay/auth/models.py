"""User model for Starlette AuthenticationMiddleware integration."""

from __future__ import annotations

from starlette.authentication import BaseUser


class AuthenticatedUser(BaseUser):
    """The username bound to a verified credential cookie."""

    def __init__(self, username: str) -> None:
        self._username = username

    @property
    def is_authenticated(self) -> bool:  # pragma: no cover
        return True

    @property
    def display_name(self) -> str:  # pragma: no cover
        return self._username

    @property
    def identity(self) -> str:
        return self._username

    @property
    def username(self) -> str:
        return self._username
