"""Relay server configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class RelayServerSettings(BaseSettings):
    model_config = {"env_prefix": "RELAY_"}

    log_dir: str = Field(default="backend/logs/relay", min_length=1)

    # Expected Origin header on the live channel; empty or None disables the check.
    ws_allowed_origin: str | None = "http://localhost:8000"

    # Events buffered per live connection before it is dropped as a slow consumer.
    outbound_queue_size: int = Field(default=256, ge=1)
