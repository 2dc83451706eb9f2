"""Data access layer: repository interfaces and persistence models."""

from common.dal.message_repository import MessageRepository
from common.dal.models import Message, User
from common.dal.user_repository import UserRepository

__all__ = [
    "Message",
    "MessageRepository",
    "User",
    "UserRepository",
]
