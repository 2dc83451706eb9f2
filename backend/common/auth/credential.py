"""HMAC-SHA256 signed session credentials.

Issued at enrollment and carried by the client in the ``auth_token`` cookie.
Both the page layer and the live channel verify the signature locally, so no
server-side session table exists. Expiry is the only way a credential stops
working.

Token format: base64url(json_payload_bytes).base64url(hmac_sha256_signature)
"""

import base64
import binascii
import hashlib
import hmac
import json
import math
import time
from dataclasses import asdict, dataclass

import structlog

logger = structlog.get_logger()

_TOKEN_PARTS = 2

CREDENTIAL_TTL_SECONDS = 86400  # 24 hours
CLOCK_SKEW_SECONDS = 60


@dataclass
class SessionCredential:
    """Claims carried inside a signed credential."""

    username: str
    issued_at: float
    expires_at: float


def create_credential(username: str, secret: str, *, now: float | None = None) -> str:
    """Build a credential for ``username`` valid for 24 hours and sign it."""
    issued_at = time.time() if now is None else now
    credential = SessionCredential(
        username=username,
        issued_at=issued_at,
        expires_at=issued_at + CREDENTIAL_TTL_SECONDS,
    )
    return sign_credential(credential, secret)


def sign_credential(credential: SessionCredential, secret: str) -> str:
    payload_bytes = json.dumps(asdict(credential), sort_keys=True).encode()
    sig = hmac.new(secret.encode(), payload_bytes, hashlib.sha256).digest()
    payload_b64 = base64.urlsafe_b64encode(payload_bytes).decode()
    sig_b64 = base64.urlsafe_b64encode(sig).decode()
    return f"{payload_b64}.{sig_b64}"


def decode_credential(token: str, secret: str, *, now: float | None = None) -> SessionCredential | None:
    """Verify signature and temporal claims. Returns None on any failure.

    The reason for a rejection is logged at debug level and never returned,
    so callers cannot tell an expired token from a forged one.
    """
    parts = token.split(".")
    if len(parts) != _TOKEN_PARTS:
        logger.debug("credential malformed", reason="token_shape")
        return None

    try:
        payload_bytes = base64.urlsafe_b64decode(parts[0])
        provided_sig = base64.urlsafe_b64decode(parts[1])
    except (ValueError, binascii.Error):
        logger.debug("credential malformed", reason="base64")
        return None

    expected_sig = hmac.new(secret.encode(), payload_bytes, hashlib.sha256).digest()
    if not hmac.compare_digest(provided_sig, expected_sig):
        logger.debug("credential signature mismatch")
        return None

    try:
        data = json.loads(payload_bytes)
        credential = SessionCredential(**data)
    except (json.JSONDecodeError, TypeError, KeyError):
        logger.debug("credential malformed", reason="payload")
        return None

    if not isinstance(credential.username, str) or not credential.username:
        logger.debug("credential malformed", reason="username")
        return None

    if not _check_timestamps(credential, time.time() if now is None else now):
        return None

    return credential


def _is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _check_timestamps(credential: SessionCredential, now: float) -> bool:
    """Reject non-numeric, future-issued, over-long, and expired credentials."""
    if not _is_finite_number(credential.issued_at) or not _is_finite_number(credential.expires_at):
        logger.debug("credential non-finite timestamp")
        return False

    if credential.issued_at > now + CLOCK_SKEW_SECONDS:
        logger.debug("credential issued in the future")
        return False

    if credential.expires_at <= credential.issued_at:
        logger.debug("credential expires_at <= issued_at")
        return False

    if credential.expires_at - credential.issued_at > CREDENTIAL_TTL_SECONDS + CLOCK_SKEW_SECONDS:
        logger.debug("credential lifetime too long")
        return False

    if now >= credential.expires_at:
        logger.debug("credential expired", username=credential.username)
        return False

    return True
