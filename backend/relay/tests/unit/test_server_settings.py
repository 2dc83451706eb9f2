import pytest
from pydantic import ValidationError

from common.auth.settings import IdentitySettings
from relay.server.settings import RelayServerSettings


class TestRelayServerSettings:
    def test_defaults(self, monkeypatch):
        for name in ("RELAY_LOG_DIR", "RELAY_WS_ALLOWED_ORIGIN", "RELAY_OUTBOUND_QUEUE_SIZE"):
            monkeypatch.delenv(name, raising=False)
        settings = RelayServerSettings()
        assert settings.log_dir == "backend/logs/relay"
        assert settings.ws_allowed_origin == "http://localhost:8000"
        assert settings.outbound_queue_size == 256

    def test_overrides_from_env(self, monkeypatch):
        monkeypatch.setenv("RELAY_LOG_DIR", "custom/relay-logs")
        monkeypatch.setenv("RELAY_WS_ALLOWED_ORIGIN", "https://chat.example.com")
        monkeypatch.setenv("RELAY_OUTBOUND_QUEUE_SIZE", "16")
        settings = RelayServerSettings()
        assert settings.log_dir == "custom/relay-logs"
        assert settings.ws_allowed_origin == "https://chat.example.com"
        assert settings.outbound_queue_size == 16

    def test_queue_size_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("RELAY_OUTBOUND_QUEUE_SIZE", "0")
        with pytest.raises(ValidationError, match="outbound_queue_size"):
            RelayServerSettings()


class TestIdentitySettings:
    def test_secret_from_env(self, monkeypatch):
        monkeypatch.setenv("AUTH_CREDENTIAL_SECRET", "from-env")
        monkeypatch.delenv("AUTH_COOKIE_SECURE", raising=False)
        settings = IdentitySettings()  # type: ignore[call-arg]
        assert settings.credential_secret == "from-env"
        assert settings.cookie_secure is False

    def test_missing_secret_raises(self, monkeypatch):
        monkeypatch.delenv("AUTH_CREDENTIAL_SECRET", raising=False)
        with pytest.raises(ValidationError, match="credential_secret"):
            IdentitySettings()  # type: ignore[call-arg]

    def test_empty_secret_raises(self, monkeypatch):
        monkeypatch.setenv("AUTH_CREDENTIAL_SECRET", "")
        with pytest.raises(ValidationError, match="credential_secret"):
            IdentitySettings()  # type: ignore[call-arg]

    def test_cookie_secure_flag(self, monkeypatch):
        monkeypatch.setenv("AUTH_CREDENTIAL_SECRET", "s")
        monkeypatch.setenv("AUTH_COOKIE_SECURE", "true")
        assert IdentitySettings().cookie_secure is True  # type: ignore[call-arg]
