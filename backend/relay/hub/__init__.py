"""Live channel: connection registry, broadcast hub, and WebSocket endpoint."""

from relay.hub.broadcast import BroadcastHub
from relay.hub.connections import ConnectionRegistry, ConnectionState, LiveConnection
from relay.hub.transport import Transport

__all__ = [
    "BroadcastHub",
    "ConnectionRegistry",
    "ConnectionState",
    "LiveConnection",
    "Transport",
]
