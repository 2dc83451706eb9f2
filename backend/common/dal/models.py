"""Persistence models for users and direct messages."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Directory entry created on first enrollment.

    ``user_id`` goes over the wire as ``id``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(alias="id")  # opaque uuid4, safe to expose in URLs
    username: str


class Message(BaseModel):
    """A persisted direct message.

    Wire names are ``from``/``to``; use ``model_dump(by_alias=True)`` when
    sending to clients.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sequence: int  # assigned by the store, strictly increasing
    sender: str = Field(alias="from")
    recipient: str = Field(alias="to")
    content: str
    sent_at: datetime
