"""Bot registry: CRUD over bot definitions, ownership checks and sharing."""

import logging

from ..chats import ChatStore
from ..errors import NotFoundError, PermissionDeniedError, ValidationError
from ..storage import EPOCH, SERVER_TIMESTAMP, DocumentRef, DocumentStore
from .models import BOTS_COLLECTION, Bot, BotDraft, BotUpdate

logger = logging.getLogger(__name__)


def _require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value


class BotRegistry:
    """Stores bots in the ``bots`` collection.

    Deleting a bot cascades to its chat sessions through the ChatStore.
    Sharing duplicates: the recipient gets a new bot with ``sharedFrom``
    pointing at the source, and later edits to either are independent.
    """

    def __init__(self, store: DocumentStore, chat_store: ChatStore):
        self._store = store
        self._chats = chat_store

    @staticmethod
    def _ref(bot_id: str) -> DocumentRef:
        return DocumentRef(collection=BOTS_COLLECTION, id=bot_id)

    @staticmethod
    def _check_owner(bot: Bot, caller_id: str) -> None:
        if bot.owner_id != caller_id:
            raise PermissionDeniedError(f"User {caller_id} does not own bot {bot.id}")

    async def create(
        self,
        owner_id: str,
        name: str,
        system_prompt: str,
        description: str | None = None,
        *,
        shared_from: str | None = None
    ) -> str:
        """Create a bot and return its id.

        Raises:
            ValidationError: If name or system prompt is empty
        """
        data = {
            "userId": _require_text(owner_id, "Owner id"),
            "name": _require_text(name, "Name"),
            "systemPrompt": _require_text(system_prompt, "System prompt"),
            "createdAt": SERVER_TIMESTAMP,
        }
        if description:
            data["description"] = description
        if shared_from:
            data["sharedFrom"] = shared_from

        ref = await self._store.add(BOTS_COLLECTION, data)
        logger.info("Created bot %s for user %s", ref.id, owner_id)
        return ref.id

    async def create_from_draft(self, owner_id: str, draft: BotDraft) -> str:
        """Create a bot from (possibly edited) creation-flow values."""
        return await self.create(
            owner_id,
            draft.name,
            draft.system_prompt,
            draft.description,
            shared_from=draft.shared_from
        )

    async def find(self, bot_id: str) -> Bot | None:
        doc = await self._store.get(self._ref(bot_id))
        return Bot.model_validate(doc.to_record()) if doc is not None else None

    async def get(self, bot_id: str) -> Bot:
        """Load a bot.

        Raises:
            NotFoundError: If the bot does not exist
        """
        bot = await self.find(bot_id)
        if bot is None:
            raise NotFoundError(f"Bot {bot_id} not found")
        return bot

    async def list_by_owner(self, owner_id: str) -> list[Bot]:
        """Bots owned by a user, newest first."""
        docs = await self._store.query(BOTS_COLLECTION, filters={"userId": owner_id})
        bots = [Bot.model_validate(doc.to_record()) for doc in docs]
        return sorted(bots, key=lambda bot: bot.created_at or EPOCH, reverse=True)

    async def update(self, bot_id: str, changes: BotUpdate, *, caller_id: str) -> Bot:
        """Apply a partial update as the bot's owner.

        Raises:
            NotFoundError: If the bot does not exist
            PermissionDeniedError: If caller_id is not the owner
            ValidationError: If name or system prompt would become empty
        """
        bot = await self.get(bot_id)
        self._check_owner(bot, caller_id)

        if changes.name is not None:
            _require_text(changes.name, "Name")
        if changes.system_prompt is not None:
            _require_text(changes.system_prompt, "System prompt")

        await self._store.update(
            self._ref(bot_id),
            {**changes.to_fields(), "updatedAt": SERVER_TIMESTAMP}
        )
        logger.info("Updated bot %s", bot_id)
        return await self.get(bot_id)

    async def delete(self, bot_id: str, *, caller_id: str) -> int:
        """Delete a bot and all of its chat sessions.

        Each session is removed atomically with its messages before the
        bot record goes, so a failure part-way leaves the bot in place and
        the delete can be repeated.

        Returns:
            Number of chat sessions deleted

        Raises:
            NotFoundError: If the bot does not exist
            PermissionDeniedError: If caller_id is not the owner
        """
        bot = await self.get(bot_id)
        self._check_owner(bot, caller_id)

        deleted = 0
        for chat in await self._chats.list_sessions_for_bot(bot_id):
            try:
                await self._chats.delete_session(chat.id)
            except NotFoundError:
                logger.debug("Chat %s already gone while deleting bot %s", chat.id, bot_id)
                continue
            deleted += 1

        await self._store.delete(self._ref(bot_id))
        logger.info("Deleted bot %s and %d chats", bot_id, deleted)
        return deleted

    async def draft_from(self, bot_id: str) -> BotDraft:
        """Creation-flow values copied from an existing bot."""
        bot = await self.get(bot_id)
        return BotDraft(
            name=bot.name,
            system_prompt=bot.system_prompt,
            description=bot.description,
            shared_from=bot.id
        )

    async def share(self, bot_id: str, recipient_id: str) -> Bot:
        """Give a recipient their own copy of a bot.

        The source record is only read, never written.

        Raises:
            NotFoundError: If the source bot does not exist
        """
        draft = await self.draft_from(bot_id)
        new_id = await self.create_from_draft(recipient_id, draft)
        logger.info("Shared bot %s with user %s as %s", bot_id, recipient_id, new_id)
        return await self.get(new_id)
