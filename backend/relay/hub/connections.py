"""Live connection handles and the registry that maps usernames to them."""

from __future__ import annotations

import asyncio
import contextlib
import json
import uuid
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from relay.hub.transport import Transport

logger = structlog.get_logger()

DEFAULT_OUTBOUND_QUEUE_SIZE = 256


class ConnectionState(StrEnum):
    CONNECTING = "connecting"
    AUTHORIZED = "authorized"
    ACTIVE = "active"
    CLOSED = "closed"


class LiveConnection:
    """One transport bound to a username, with a bounded outbound queue.

    A single writer task drains the queue so events reach the client in the
    order they were enqueued, and a slow client never blocks whoever is
    enqueueing.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        queue_size: int = DEFAULT_OUTBOUND_QUEUE_SIZE,
        connection_id: str | None = None,
    ) -> None:
        self.connection_id = connection_id or str(uuid.uuid4())
        self.username: str | None = None
        self.state = ConnectionState.CONNECTING
        self._transport = transport
        self._outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=queue_size)
        self._writer: asyncio.Task[None] | None = None
        self._broken = False

    @property
    def transport(self) -> Transport:
        return self._transport

    def authorize(self, username: str) -> None:
        if self.state != ConnectionState.CONNECTING:
            raise RuntimeError(f"cannot authorize a connection in state {self.state}")
        self.username = username
        self.state = ConnectionState.AUTHORIZED

    def activate(self) -> None:
        """Start the writer task. Only authorized connections can become active."""
        if self.state != ConnectionState.AUTHORIZED:
            raise RuntimeError(f"cannot activate a connection in state {self.state}")
        self.state = ConnectionState.ACTIVE
        self._writer = asyncio.create_task(self._write_loop())

    def enqueue(self, event: dict[str, Any]) -> bool:
        """Queue an event for delivery. Returns False if closed or the queue is full."""
        if self.state != ConnectionState.ACTIVE:
            return False
        try:
            self._outbox.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    async def flush(self) -> None:
        """Wait until every queued event has been written (or discarded)."""
        if self.state == ConnectionState.ACTIVE:
            await self._outbox.join()

    async def close(self, code: int = 1000, reason: str = "") -> None:
        """Stop the writer and close the transport. Safe to call repeatedly."""
        if self.state == ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED
        if self._writer is not None:
            self._writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._writer
            self._writer = None
        with contextlib.suppress(ConnectionError, RuntimeError, OSError):
            await self._transport.close(code=code, reason=reason)

    async def _write_loop(self) -> None:
        while True:
            event = await self._outbox.get()
            try:
                if not self._broken:
                    await self._transport.send_text(json.dumps(event))
            except (ConnectionError, RuntimeError, OSError):
                # The reader side notices the disconnect and unregisters us;
                # until then, discard instead of retrying.
                self._broken = True
                logger.info("live connection write failed", connection_id=self.connection_id, username=self.username)
            finally:
                self._outbox.task_done()


class ConnectionRegistry:
    """Track live connections per username for fan-out.

    Owned by the broadcast hub. Methods are synchronous and never suspend,
    so each mutation is atomic with respect to other coroutines on the
    event loop, and lookups return snapshots that later mutations cannot
    change.
    """

    def __init__(self) -> None:
        self._by_username: dict[str, dict[str, LiveConnection]] = {}  # username -> {conn_id -> conn}
        self._by_id: dict[str, LiveConnection] = {}  # conn_id -> conn (reverse index)

    def register(self, connection: LiveConnection) -> None:
        if connection.username is None:
            raise ValueError("connection has no bound username")
        self._by_username.setdefault(connection.username, {})[connection.connection_id] = connection
        self._by_id[connection.connection_id] = connection

    def unregister(self, connection_id: str) -> LiveConnection | None:
        """Remove a connection and return it, or None if it was not registered."""
        connection = self._by_id.pop(connection_id, None)
        if connection is None:
            return None
        handles = self._by_username.get(connection.username or "")
        if handles is not None:
            handles.pop(connection_id, None)
            if not handles:
                del self._by_username[connection.username or ""]
        return connection

    def connections_for(self, *usernames: str) -> list[LiveConnection]:
        """Snapshot of every handle bound to any of ``usernames``, each listed once."""
        seen: dict[str, LiveConnection] = {}
        for username in usernames:
            for conn_id, connection in self._by_username.get(username, {}).items():
                seen.setdefault(conn_id, connection)
        return list(seen.values())

    def get(self, connection_id: str) -> LiveConnection | None:
        return self._by_id.get(connection_id)

    def all(self) -> list[LiveConnection]:
        return list(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)
