import asyncio
import json
from typing import Any

from relay.hub.transport import Transport


class MockTransport(Transport):
    def __init__(self) -> None:
        self._inbox: asyncio.Queue[str] = asyncio.Queue()
        self._outbox: list[dict[str, Any]] = []
        self._accepted = False
        self._closed = False
        self._close_code: int | None = None
        self._close_reason: str | None = None

    @property
    def sent_messages(self) -> list[dict[str, Any]]:
        return self._outbox.copy()

    @property
    def is_accepted(self) -> bool:
        return self._accepted

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def close_code(self) -> int | None:
        return self._close_code

    @property
    def close_reason(self) -> str | None:
        return self._close_reason

    async def accept(self) -> None:
        self._accepted = True

    async def send_text(self, data: str) -> None:
        if self._closed:
            raise RuntimeError("Connection is closed")
        # decode and store for test inspection
        self._outbox.append(json.loads(data))

    async def receive_text(self) -> str:
        if self._closed:
            raise RuntimeError("Connection is closed")
        return await self._inbox.get()

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self._closed = True
        self._close_code = code
        self._close_reason = reason

    def messages_of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [m for m in self._outbox if m.get("type") == event_type]
