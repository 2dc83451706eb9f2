"""Starlette WebSocket endpoint for the live channel."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from relay.auth.backend import CREDENTIAL_COOKIE
from relay.hub.messages import PONG, ErrorCode, ErrorEvent, PingEvent, SendEvent, parse_client_event
from relay.hub.transport import Transport

if TYPE_CHECKING:
    from relay.hub.broadcast import BroadcastHub
    from relay.hub.connections import LiveConnection
    from relay.server.settings import RelayServerSettings

logger = structlog.get_logger()

CLOSE_FORBIDDEN_ORIGIN = 4003


class WebSocketTransport(Transport):
    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket

    async def accept(self) -> None:
        await self._websocket.accept()

    async def send_text(self, data: str) -> None:
        try:
            await self._websocket.send_text(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_text(self) -> str:
        message = await self._websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(code=message.get("code", 1000), reason=message.get("reason"))
        if message.get("text") is not None:
            return message["text"]
        return (message.get("bytes") or b"").decode("utf-8", errors="replace")

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if WebSocketState.DISCONNECTED in (self._websocket.application_state, self._websocket.client_state):
            return
        with contextlib.suppress(WebSocketDisconnect):
            await self._websocket.close(code=code, reason=reason)


async def chat_websocket(websocket: WebSocket) -> None:
    """Handle one live-channel connection from handshake to disconnect."""
    if not _check_origin(websocket):
        await websocket.close(code=CLOSE_FORBIDDEN_ORIGIN, reason="forbidden_origin")
        return

    hub: BroadcastHub = websocket.app.state.hub
    credential = websocket.cookies.get(CREDENTIAL_COOKIE) or websocket.query_params.get("token")
    transport = WebSocketTransport(websocket)

    connection = await hub.connect(transport, credential)
    if connection is None:
        return

    log = logger.bind(connection_id=connection.connection_id, username=connection.username)
    try:
        await _receive_loop(transport, hub, connection)
    except WebSocketDisconnect:
        pass
    except Exception:  # pragma: no cover
        log.exception("unexpected error in live channel")
    finally:
        await hub.on_disconnect(connection)


def _check_origin(websocket: WebSocket) -> bool:
    settings: RelayServerSettings = websocket.app.state.settings
    if not settings.ws_allowed_origin:
        return True
    return websocket.headers.get("origin", "") == settings.ws_allowed_origin


async def _receive_loop(transport: WebSocketTransport, hub: BroadcastHub, connection: LiveConnection) -> None:
    # Each send is fully handled before the next frame is read, which keeps
    # one connection's messages in order.
    while True:
        raw = await transport.receive_text()
        try:
            event = parse_client_event(raw)
        except (ValueError, ValidationError) as e:
            hub.reply(connection, ErrorEvent(code=ErrorCode.INVALID_MESSAGE, message=str(e)).to_wire())
            continue

        if isinstance(event, SendEvent):
            await hub.on_send(connection, event)
        elif isinstance(event, PingEvent):
            hub.reply(connection, PONG)
