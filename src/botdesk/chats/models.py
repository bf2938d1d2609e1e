"""Data models for chat sessions and messages.

Attribute names are snake_case; the stored field names (aliases) keep the
camelCase document layout used in the ``chats`` collection.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..storage.models import EPOCH

CHATS_COLLECTION = "chats"
MESSAGES_SUBCOLLECTION = "messages"


class Chat(BaseModel):
    """One conversation thread between a user and a bot."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str = Field(alias="userId")
    bot_id: str = Field(alias="botId")
    last_message: str | None = Field(default=None, alias="lastMessage")
    last_message_timestamp: datetime | None = Field(default=None, alias="lastMessageTimestamp")

    @property
    def sort_key(self) -> datetime:
        """Recency used for ordering; sessions without a timestamp count as epoch 0."""
        return self.last_message_timestamp or EPOCH


class Message(BaseModel):
    """One turn in a chat session. Messages are never modified once written."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    chat_id: str
    content: str
    sender_id: str = Field(alias="senderId")
    is_bot: bool = Field(default=False, alias="isBot")
    timestamp: datetime | None = None

    @property
    def role(self) -> str:
        return "assistant" if self.is_bot else "user"
