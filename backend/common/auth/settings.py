"""Identity and storage settings."""

from pydantic import Field
from pydantic_settings import BaseSettings


class IdentitySettings(BaseSettings):
    model_config = {"env_prefix": "AUTH_"}

    # HMAC secret for session credentials -- required, no default.
    # The application fails to start if AUTH_CREDENTIAL_SECRET is not set.
    credential_secret: str = Field(min_length=1)

    # SQLite database file path (":memory:" is accepted for tests)
    database_path: str = Field(default="backend/storage.db", min_length=1)

    # Cookie Secure flag -- True in production, False for local dev (HTTP)
    cookie_secure: bool = False
