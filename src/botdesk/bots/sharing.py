"""Share links for bots.

A share link has the shape ``{base_url}/share/{botId}``. Opening it while
signed out parks the bot id in PendingShares and sends the user to the
login page; once signed in, the creation flow opens pre-filled with a copy
of the shared bot.
"""

import logging
import re
from urllib.parse import quote, unquote

from pydantic import BaseModel

from ..identity import IdentityProvider
from .models import Bot, BotDraft
from .registry import BotRegistry

logger = logging.getLogger(__name__)

HOME_PATH = "/"
LOGIN_PATH = "/login"
CREATE_BOT_PATH = "/create-bot"

DEFAULT_INVITE_TITLE = "Check out this bot!"
DEFAULT_INVITE_TEXT = "I found this interesting bot you might like."

_SHARE_PATH_RE = re.compile(r"^/share/(?P<bot_id>[^/?#]+)/?$")


def build_share_url(base_url: str, bot_id: str) -> str:
    """Public URL that opens the share flow for a bot."""
    return f"{base_url.rstrip('/')}/share/{quote(bot_id, safe='')}"


def parse_share_path(path: str) -> str | None:
    """Extract the bot id from a ``/share/{botId}`` path, or None."""
    match = _SHARE_PATH_RE.match(path)
    return unquote(match.group("bot_id")) if match else None


class ShareInvite(BaseModel):
    """What a share sheet shows: a title, a line of text and the link."""

    title: str
    text: str
    url: str


def build_share_invite(base_url: str, bot: Bot) -> ShareInvite:
    return ShareInvite(
        title=bot.name or DEFAULT_INVITE_TITLE,
        text=bot.description or DEFAULT_INVITE_TEXT,
        url=build_share_url(base_url, bot.id)
    )


class PendingShares:
    """Holds the bot id of a share link opened before sign-in.

    Lives as long as the client session; nothing is persisted.
    """

    def __init__(self) -> None:
        self._bot_id: str | None = None

    def remember(self, bot_id: str) -> None:
        self._bot_id = bot_id

    def peek(self) -> str | None:
        return self._bot_id

    def pop(self) -> str | None:
        bot_id, self._bot_id = self._bot_id, None
        return bot_id


class ShareRedirect(BaseModel):
    """Where the share flow sends the user next."""

    target: str
    bot_id: str | None = None


def resolve_share(
    bot_id: str | None,
    identity: IdentityProvider,
    pending: PendingShares
) -> ShareRedirect:
    """Decide where a visit to a share link goes."""
    if not bot_id:
        return ShareRedirect(target=HOME_PATH)

    if identity.current_user is None:
        pending.remember(bot_id)
        logger.info("Share link for bot %s opened signed out; waiting for login", bot_id)
        return ShareRedirect(target=LOGIN_PATH, bot_id=bot_id)

    return ShareRedirect(
        target=f"{CREATE_BOT_PATH}?sharedBot={quote(bot_id, safe='')}",
        bot_id=bot_id
    )


def resume_pending_share(
    identity: IdentityProvider,
    pending: PendingShares
) -> ShareRedirect | None:
    """After sign-in, continue a share flow that was parked, if any."""
    if identity.current_user is None or pending.peek() is None:
        return None
    return resolve_share(pending.pop(), identity, pending)


async def load_shared_draft(registry: BotRegistry, bot_id: str) -> BotDraft:
    """Pre-filled creation-flow values for a shared bot.

    Raises:
        NotFoundError: If the shared bot no longer exists
    """
    return await registry.draft_from(bot_id)


async def accept_share(
    registry: BotRegistry,
    identity: IdentityProvider,
    bot_id: str
) -> Bot:
    """Create the signed-in user's own copy of a shared bot.

    Raises:
        NotAuthenticatedError: If nobody is signed in
        NotFoundError: If the shared bot does not exist
    """
    user = identity.require_user()
    return await registry.share(bot_id, user.id)
