"""State models published by the session controller."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ..bots import Bot
from ..chats import Chat, Message
from ..errors import BotdeskError


class ControllerPhase(str, Enum):
    """Lifecycle of a controller's view of one bot."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"  # bot and session list
    CREATING_FIRST_SESSION = "creating_first_session"
    MESSAGES_LOADING = "messages_loading"
    READY = "ready"
    ERROR = "error"
    CLOSED = "closed"


@dataclass(frozen=True)
class ViewMessage:
    """A message as shown to the user."""

    content: str
    is_bot: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str | None = None
    pending: bool = False

    @property
    def role(self) -> str:
        return "assistant" if self.is_bot else "user"

    @classmethod
    def from_message(cls, message: Message) -> "ViewMessage":
        return cls(
            content=message.content,
            is_bot=message.is_bot,
            timestamp=message.timestamp or datetime.now(timezone.utc),
            id=message.id
        )


@dataclass(frozen=True)
class ControllerSnapshot:
    """Everything a presentation layer needs to render the chat view."""

    phase: ControllerPhase
    bot: Bot | None
    chats: tuple[Chat, ...]
    selected_chat_id: str | None
    messages: tuple[ViewMessage, ...]
    draft: str
    sending: bool
    loading_messages: bool
    creating_chat: bool
    deleting_chat_id: str | None
    error: BotdeskError | None

    @property
    def can_delete_chat(self) -> bool:
        return len(self.chats) > 1 and self.deleting_chat_id is None

    @property
    def can_submit(self) -> bool:
        return (
            self.phase == ControllerPhase.READY
            and self.selected_chat_id is not None
            and not self.sending
            and bool(self.draft.strip())
        )
