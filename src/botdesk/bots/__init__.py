"""Bot definitions, the registry that stores them, and share links."""

from .models import BOTS_COLLECTION, Bot, BotDraft, BotUpdate
from .registry import BotRegistry
from .sharing import (
    PendingShares,
    ShareInvite,
    ShareRedirect,
    accept_share,
    build_share_invite,
    build_share_url,
    load_shared_draft,
    parse_share_path,
    resolve_share,
    resume_pending_share,
)

__all__ = [
    "BOTS_COLLECTION",
    "Bot",
    "BotDraft",
    "BotRegistry",
    "BotUpdate",
    "PendingShares",
    "ShareInvite",
    "ShareRedirect",
    "accept_share",
    "build_share_invite",
    "build_share_url",
    "load_shared_draft",
    "parse_share_path",
    "resolve_share",
    "resume_pending_share",
]
