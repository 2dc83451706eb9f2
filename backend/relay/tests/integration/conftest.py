"""Shared fixtures for relay integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from starlette.testclient import TestClient

from common.auth.settings import IdentitySettings
from relay.auth.backend import CREDENTIAL_COOKIE
from relay.server.app import create_app
from relay.server.settings import RelayServerSettings

if TYPE_CHECKING:
    from collections.abc import Callable

TEST_SECRET = "integration-secret"


@pytest.fixture
def app(tmp_path):
    return create_app(
        settings=RelayServerSettings(ws_allowed_origin=None, log_dir=str(tmp_path / "logs")),
        identity_settings=IdentitySettings(credential_secret=TEST_SECRET, database_path=str(tmp_path / "relay.db")),
    )


@pytest.fixture
def client(app):
    # Entering the client runs the lifespan and keeps every request and
    # WebSocket session on one event loop.
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sign_in() -> Callable[[TestClient, str], str]:
    """Enroll ``username`` through the form and return the issued credential."""

    def _sign_in(client: TestClient, username: str) -> str:
        response = client.post("/submit", data={"username": username}, follow_redirects=False)
        assert response.status_code == 303
        # The client jar keeps the cookie; the returned value is unquoted for
        # use as the live channel ?token= parameter.
        return response.cookies[CREDENTIAL_COOKIE].strip('"')

    return _sign_in
