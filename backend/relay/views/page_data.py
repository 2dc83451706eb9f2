"""Data handed to the page rendering layer for the home and chat views."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from common.dal.models import Message, User

if TYPE_CHECKING:
    from common.contacts import ContactGraph
    from common.store import MessageStore


class PageData(BaseModel):
    logged_in_user: str
    all_users: list[User]  # directory without the logged-in user
    contacts: list[str]  # usernames the logged-in user has exchanged messages with
    contact_users: list[User]
    selected_user: User | None = None
    messages: list[Message] = Field(default_factory=list)  # thread with selected_user

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


async def build_page_data(
    store: MessageStore,
    contacts: ContactGraph,
    username: str,
    selected_user_id: str | None = None,
) -> PageData:
    """Assemble the view for ``username``, optionally with one open conversation.

    Raises NotFound when ``selected_user_id`` does not exist.
    """
    selected = None
    messages: list[Message] = []
    if selected_user_id is not None:
        selected = await store.get_user_by_id(selected_user_id)
        messages = await store.history(username, selected.username)

    return PageData(
        logged_in_user=username,
        all_users=await store.list_users_excluding(username),
        contacts=sorted(await contacts.contacts_of(username)),
        contact_users=await contacts.contact_users(username),
        selected_user=selected,
        messages=messages,
    )
