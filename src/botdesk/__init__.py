"""
Botdesk: define chat bots, keep their conversations in a document store,
and talk to them through an OpenAI-compatible completion API.

Each subpackage hides one design decision: where documents live, who the
user is, which model answers, and how the chat view keeps its state.
"""

__version__ = "0.1.0"

from .bots import Bot, BotDraft, BotRegistry, BotUpdate, PendingShares
from .chats import Chat, ChatStore, Message
from .client import BotdeskClient
from .config import Settings
from .errors import (
    BackendUnavailableError,
    BotdeskError,
    CompletionFailedError,
    NotAuthenticatedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from .llm import CompletionGateway
from .session import ControllerPhase, ControllerSnapshot, Outcome, SessionController
from .storage import DocumentStore, create_document_store
from .utils import configure_logging

__all__ = [
    "Bot",
    "BotDraft",
    "BotRegistry",
    "BotUpdate",
    "PendingShares",
    "Chat",
    "ChatStore",
    "Message",
    "BotdeskClient",
    "Settings",
    "BackendUnavailableError",
    "BotdeskError",
    "CompletionFailedError",
    "NotAuthenticatedError",
    "NotFoundError",
    "PermissionDeniedError",
    "ValidationError",
    "CompletionGateway",
    "ControllerPhase",
    "ControllerSnapshot",
    "Outcome",
    "SessionController",
    "DocumentStore",
    "create_document_store",
    "configure_logging",
]
