"""Session identity: signed credentials and the service that issues them."""

from common.auth.credential import (
    CREDENTIAL_TTL_SECONDS,
    SessionCredential,
    create_credential,
    decode_credential,
    sign_credential,
)
from common.auth.service import IdentityService
from common.auth.settings import IdentitySettings

__all__ = [
    "CREDENTIAL_TTL_SECONDS",
    "IdentityService",
    "IdentitySettings",
    "SessionCredential",
    "create_credential",
    "decode_credential",
    "sign_credential",
]
