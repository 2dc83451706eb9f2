"""Typed events for the live channel protocol."""

from __future__ import annotations

import json
from datetime import datetime  # noqa: TC003 - pydantic resolves field types at runtime
from enum import StrEnum
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

if TYPE_CHECKING:
    from common.dal.models import Message

_MAX_WS_MESSAGE_SIZE = 4096


class ErrorCode(StrEnum):
    INVALID_MESSAGE = "invalid_message"
    UNAUTHENTICATED = "unauthenticated"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    STORAGE_ERROR = "storage_error"


class SendEvent(BaseModel):
    type: Literal["send"]
    to: str
    content: str  # emptiness and length are enforced by the message store


class PingEvent(BaseModel):
    type: Literal["ping"]


ClientEvent = Annotated[SendEvent | PingEvent, Field(discriminator="type")]

_client_event_adapter: TypeAdapter[ClientEvent] = TypeAdapter(ClientEvent)


def parse_client_event(raw: str) -> SendEvent | PingEvent:
    """Parse and validate a raw JSON frame into a typed client event."""
    byte_len = len(raw.encode("utf-8"))
    if byte_len > _MAX_WS_MESSAGE_SIZE:
        raise ValueError(f"Message too large ({byte_len} bytes, max {_MAX_WS_MESSAGE_SIZE})")
    data = json.loads(raw)
    return _client_event_adapter.validate_python(data)


class DeliveredEvent(BaseModel):
    """A persisted message, as seen by every live handle of both participants."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["delivered"] = "delivered"
    sender: str = Field(alias="from")
    recipient: str = Field(alias="to")
    content: str
    sequence: int
    sent_at: datetime

    @classmethod
    def from_message(cls, message: Message) -> DeliveredEvent:
        return cls(
            sender=message.sender,
            recipient=message.recipient,
            content=message.content,
            sequence=message.sequence,
            sent_at=message.sent_at,
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    code: ErrorCode
    message: str

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


PONG: dict[str, Any] = {"type": "pong"}
