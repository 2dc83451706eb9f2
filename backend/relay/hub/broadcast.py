"""Broadcast hub: authorize live connections, persist sends, fan out deliveries."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from common.errors import ChatError, NotFound, Unauthenticated
from relay.hub.connections import DEFAULT_OUTBOUND_QUEUE_SIZE, ConnectionRegistry, ConnectionState, LiveConnection
from relay.hub.messages import DeliveredEvent, ErrorCode, ErrorEvent

if TYPE_CHECKING:
    from common.auth.service import IdentityService
    from common.dal.models import Message
    from common.store import MessageStore
    from relay.hub.messages import SendEvent
    from relay.hub.transport import Transport

logger = structlog.get_logger()

CLOSE_UNAUTHORIZED = 4001
CLOSE_SLOW_CONSUMER = 4008
CLOSE_GOING_AWAY = 1001


class BroadcastHub:
    """Own the live connection registry and route sends through the message store.

    Connections move connecting -> authorized -> active -> closed. Only
    active connections are registered, and only registered connections
    receive deliveries.
    """

    def __init__(
        self,
        store: MessageStore,
        identity: IdentityService,
        *,
        outbound_queue_size: int = DEFAULT_OUTBOUND_QUEUE_SIZE,
    ) -> None:
        self._store = store
        self._identity = identity
        self._outbound_queue_size = outbound_queue_size
        self._registry = ConnectionRegistry()
        self._closing: set[asyncio.Task[None]] = set()

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    async def connect(self, transport: Transport, credential: str | None) -> LiveConnection | None:
        """Verify the credential and register the connection.

        On failure the transport is rejected with close code 4001 and None
        is returned; nothing is registered.
        """
        connection = LiveConnection(transport, queue_size=self._outbound_queue_size)
        try:
            username = self._identity.verify(credential)
        except Unauthenticated:
            logger.info("live connection rejected", connection_id=connection.connection_id, reason="unauthorized")
            await connection.close(code=CLOSE_UNAUTHORIZED, reason="unauthorized")
            return None

        connection.authorize(username)
        await transport.accept()
        self._registry.register(connection)
        connection.activate()
        logger.info(
            "live connection active",
            connection_id=connection.connection_id,
            username=username,
            handles=len(self._registry.connections_for(username)),
        )
        return connection

    async def on_send(self, connection: LiveConnection, event: SendEvent) -> Message | None:
        """Persist a send from ``connection`` and deliver it to both participants.

        The sender is always the connection's bound username. Failures are
        reported to ``connection`` alone and nothing is broadcast.
        """
        if connection.state != ConnectionState.ACTIVE or connection.username is None:
            return None
        sender = connection.username
        log = logger.bind(connection_id=connection.connection_id, username=sender)

        try:
            if event.to and await self._store.get_user(event.to) is None:
                raise NotFound(f"Unknown recipient '{event.to}'")
            message = await self._store.append(sender, event.to, event.content)
        except ChatError as e:
            log.info("send rejected", code=e.code, reason=str(e))
            self._send(connection, ErrorEvent(code=ErrorCode(e.code), message=str(e)).to_wire())
            return None

        delivered = DeliveredEvent.from_message(message).to_wire()
        targets = self._registry.connections_for(message.sender, message.recipient)
        for target in targets:
            self._send(target, delivered)
        log.info("message delivered", sequence=message.sequence, recipient=message.recipient, handles=len(targets))
        return message

    def reply(self, connection: LiveConnection, event: dict[str, Any]) -> None:
        """Queue an event for one connection only."""
        self._send(connection, event)

    async def on_disconnect(self, connection: LiveConnection) -> None:
        """Unregister and close the connection. Safe to call more than once."""
        removed = self._registry.unregister(connection.connection_id)
        await connection.close()
        if removed is not None:
            logger.info("live connection closed", connection_id=connection.connection_id, username=connection.username)

    async def shutdown(self) -> None:
        """Close every live connection. Called when the application stops."""
        connections = self._registry.all()
        for connection in connections:
            self._registry.unregister(connection.connection_id)
            await connection.close(code=CLOSE_GOING_AWAY, reason="server_shutdown")
        await self.wait_closed()
        if connections:
            logger.info("broadcast hub shut down", closed=len(connections))

    def _send(self, connection: LiveConnection, event: dict[str, Any]) -> None:
        if connection.enqueue(event):
            return
        if connection.state != ConnectionState.ACTIVE:
            return
        # Queue full: drop the slow consumer rather than block the sender.
        logger.warning("dropping slow consumer", connection_id=connection.connection_id, username=connection.username)
        self._registry.unregister(connection.connection_id)
        task = asyncio.create_task(connection.close(code=CLOSE_SLOW_CONSUMER, reason="slow_consumer"))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def wait_closed(self) -> None:
        """Wait for pending slow-consumer closes to finish."""
        if self._closing:
            await asyncio.gather(*list(self._closing), return_exceptions=True)
