"""Integration tests for the live channel over a real Starlette WebSocket."""

import json

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from common.auth.settings import IdentitySettings
from relay.server.app import create_app
from relay.server.settings import RelayServerSettings


class TestLiveChannelAuth:
    def test_missing_credential_closed_with_4001(self, client):
        client.cookies.clear()
        with pytest.raises(WebSocketDisconnect) as exc_info, client.websocket_connect("/ws"):
            pass
        assert exc_info.value.code == 4001

    def test_invalid_token_closed_with_4001(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info, client.websocket_connect("/ws?token=nope"):
            pass
        assert exc_info.value.code == 4001

    def test_cookie_credential_accepted(self, client, sign_in):
        sign_in(client, "alice")
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_token_query_parameter_accepted(self, client, sign_in):
        token = sign_in(client, "alice")
        client.cookies.clear()
        with client.websocket_connect(f"/ws?token={token}") as ws:
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}


class TestOriginCheck:
    @pytest.fixture
    def strict_client(self, tmp_path):
        app = create_app(
            settings=RelayServerSettings(ws_allowed_origin="http://chat.test"),
            identity_settings=IdentitySettings(credential_secret="s", database_path=str(tmp_path / "relay.db")),
        )
        with TestClient(app) as test_client:
            yield test_client

    def test_foreign_origin_rejected(self, strict_client, sign_in):
        sign_in(strict_client, "alice")
        with (
            pytest.raises(WebSocketDisconnect) as exc_info,
            strict_client.websocket_connect("/ws", headers={"origin": "http://evil.test"}),
        ):
            pass
        assert exc_info.value.code == 4003

    def test_matching_origin_accepted(self, strict_client, sign_in):
        sign_in(strict_client, "alice")
        with strict_client.websocket_connect("/ws", headers={"origin": "http://chat.test"}) as ws:
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}


class TestDelivery:
    def test_alice_to_bob(self, client, sign_in):
        alice_token = sign_in(client, "alice")
        bob_token = sign_in(client, "bob")
        client.cookies.clear()

        with (
            client.websocket_connect(f"/ws?token={alice_token}") as alice,
            client.websocket_connect(f"/ws?token={bob_token}") as bob,
        ):
            alice.send_json({"type": "send", "to": "bob", "content": "hi"})

            echoed = alice.receive_json()
            delivered = bob.receive_json()

        assert echoed == delivered
        assert delivered["type"] == "delivered"
        assert delivered["from"] == "alice"
        assert delivered["to"] == "bob"
        assert delivered["content"] == "hi"
        assert delivered["sequence"] >= 1

    def test_multi_device_delivery(self, client, sign_in):
        alice_token = sign_in(client, "alice")
        bob_token = sign_in(client, "bob")
        client.cookies.clear()

        with (
            client.websocket_connect(f"/ws?token={alice_token}") as laptop,
            client.websocket_connect(f"/ws?token={alice_token}") as phone,
            client.websocket_connect(f"/ws?token={bob_token}") as bob,
        ):
            bob.send_json({"type": "send", "to": "alice", "content": "both of you"})

            received = [ws.receive_json() for ws in (bob, laptop, phone)]

        assert all(r["content"] == "both of you" for r in received)
        assert len({r["sequence"] for r in received}) == 1

    def test_empty_content_error_goes_to_sender_only(self, client, sign_in):
        alice_token = sign_in(client, "alice")
        bob_token = sign_in(client, "bob")
        client.cookies.clear()

        with (
            client.websocket_connect(f"/ws?token={alice_token}") as alice,
            client.websocket_connect(f"/ws?token={bob_token}") as bob,
        ):
            alice.send_json({"type": "send", "to": "bob", "content": ""})
            error = alice.receive_json()

            # The next thing bob sees is a real message, not the failed send.
            alice.send_json({"type": "send", "to": "bob", "content": "second try"})
            assert alice.receive_json()["content"] == "second try"
            assert bob.receive_json()["content"] == "second try"

        assert error["type"] == "error"
        assert error["code"] == "validation_error"

    def test_unknown_recipient(self, client, sign_in):
        sign_in(client, "alice")
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "send", "to": "nobody", "content": "hello?"})
            error = ws.receive_json()

        assert error["code"] == "not_found"

    def test_delivered_message_appears_in_history(self, client, sign_in):
        sign_in(client, "bob")
        sign_in(client, "alice")
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "send", "to": "bob", "content": "persisted"})
            delivered = ws.receive_json()

        bob_id = next(u["id"] for u in client.get("/").json()["all_users"] if u["username"] == "bob")
        messages = client.get(f"/chat/{bob_id}").json()["messages"]
        assert messages[-1]["sequence"] == delivered["sequence"]
        assert messages[-1]["content"] == "persisted"


class TestMalformedFrames:
    def test_invalid_json_reports_error_and_keeps_connection(self, client, sign_in):
        sign_in(client, "alice")
        with client.websocket_connect("/ws") as ws:
            ws.send_text("{not json")
            error = ws.receive_json()

            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

        assert error["type"] == "error"
        assert error["code"] == "invalid_message"

    def test_unknown_event_type(self, client, sign_in):
        sign_in(client, "alice")
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "typing", "to": "bob"})
            assert ws.receive_json()["code"] == "invalid_message"

    def test_oversized_frame(self, client, sign_in):
        sign_in(client, "alice")
        with client.websocket_connect("/ws") as ws:
            ws.send_text(json.dumps({"type": "send", "to": "bob", "content": "x" * 5000}))
            error = ws.receive_json()

        assert error["code"] == "invalid_message"
        assert "too large" in error["message"]


class TestDisconnect:
    def test_disconnect_unregisters_handle(self, client, app, sign_in):
        sign_in(client, "alice")
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "ping"})
            ws.receive_json()
            assert len(app.state.hub.registry) == 1

        assert len(app.state.hub.registry) == 0
