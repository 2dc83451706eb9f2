"""Starlette AuthenticationBackend that verifies the credential cookie."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.authentication import AuthCredentials, AuthenticationBackend

from common.errors import Unauthenticated
from relay.auth.models import AuthenticatedUser

if TYPE_CHECKING:
    from starlette.requests import HTTPConnection

    from common.auth.service import IdentityService

CREDENTIAL_COOKIE = "auth_token"


class CredentialCookieBackend(AuthenticationBackend):
    """Authenticate HTTP requests from the ``auth_token`` cookie.

    WebSocket scopes are left unauthenticated here: the broadcast hub
    verifies the live-channel credential itself at connection time.
    """

    def __init__(self, identity: IdentityService) -> None:
        self._identity = identity

    async def authenticate(
        self,
        conn: HTTPConnection,
    ) -> tuple[AuthCredentials, AuthenticatedUser] | None:
        if conn.scope["type"] != "http":
            return None
        token = conn.cookies.get(CREDENTIAL_COOKIE)
        if token is None:
            return None
        try:
            username = self._identity.verify(token)
        except Unauthenticated:
            return None
        return AuthCredentials(["authenticated"]), AuthenticatedUser(username)
