"""HTTP authentication: credential cookie backend and route policy."""

from relay.auth.backend import CREDENTIAL_COOKIE, CredentialCookieBackend
from relay.auth.models import AuthenticatedUser
from relay.auth.policy import protected_html, public_route, validate_route_auth_policy

__all__ = [
    "CREDENTIAL_COOKIE",
    "AuthenticatedUser",
    "CredentialCookieBackend",
    "protected_html",
    "public_route",
    "validate_route_auth_policy",
]
