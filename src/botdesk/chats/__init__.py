"""Chat sessions and their ordered messages."""

from .models import CHATS_COLLECTION, MESSAGES_SUBCOLLECTION, Chat, Message
from .store import ChatStore

__all__ = [
    "CHATS_COLLECTION",
    "MESSAGES_SUBCOLLECTION",
    "Chat",
    "ChatStore",
    "Message",
]
