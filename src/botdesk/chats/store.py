"""Chat store: CRUD over chat sessions and their message sequences."""

import logging

from ..errors import BackendUnavailableError, NotFoundError, ValidationError
from ..storage import SERVER_TIMESTAMP, Document, DocumentRef, DocumentStore, OrderBy, subcollection
from .models import CHATS_COLLECTION, MESSAGES_SUBCOLLECTION, Chat, Message

logger = logging.getLogger(__name__)


class ChatStore:
    """Persists chat sessions in ``chats`` and messages in ``chats/{id}/messages``.

    Invariants kept here:
    - A chat's lastMessage/lastMessageTimestamp are written in the same
      atomic batch as the message they describe, with the same server
      timestamp.
    - Deleting a session removes its messages and its record in one batch.
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    @staticmethod
    def _chat_ref(chat_id: str) -> DocumentRef:
        return DocumentRef(collection=CHATS_COLLECTION, id=chat_id)

    @staticmethod
    def _messages_collection(chat_id: str) -> str:
        return subcollection(CHATS_COLLECTION, chat_id, MESSAGES_SUBCOLLECTION)

    @staticmethod
    def _to_chat(doc: Document) -> Chat:
        return Chat.model_validate(doc.to_record())

    @staticmethod
    def _to_message(chat_id: str, doc: Document) -> Message:
        return Message.model_validate({**doc.to_record(), "chat_id": chat_id})

    async def create_session(self, user_id: str, bot_id: str) -> str:
        """Create an empty session; its timestamp is the creation time."""
        ref = self._store.document(CHATS_COLLECTION)
        await self._store.set(ref, {
            "userId": user_id,
            "botId": bot_id,
            "lastMessageTimestamp": SERVER_TIMESTAMP,
        })
        logger.info("Created chat %s for user %s and bot %s", ref.id, user_id, bot_id)
        return ref.id

    async def find_session(self, chat_id: str) -> Chat | None:
        doc = await self._store.get(self._chat_ref(chat_id))
        return self._to_chat(doc) if doc is not None else None

    async def get_session(self, chat_id: str) -> Chat:
        """Load a session.

        Raises:
            NotFoundError: If the chat does not exist
        """
        chat = await self.find_session(chat_id)
        if chat is None:
            raise NotFoundError(f"Chat {chat_id} not found")
        return chat

    async def list_sessions(self, user_id: str, bot_id: str) -> list[Chat]:
        """Sessions of one user with one bot, most recent first.

        Sorting happens here rather than in the query so that sessions
        without a timestamp are kept (as epoch 0) and no composite index
        is required.
        """
        docs = await self._store.query(
            CHATS_COLLECTION,
            filters={"userId": user_id, "botId": bot_id}
        )
        chats = [self._to_chat(doc) for doc in docs]
        return sorted(chats, key=lambda chat: chat.sort_key, reverse=True)

    async def list_sessions_for_bot(self, bot_id: str) -> list[Chat]:
        """Every session of a bot, whoever owns it."""
        docs = await self._store.query(CHATS_COLLECTION, filters={"botId": bot_id})
        return [self._to_chat(doc) for doc in docs]

    async def append_message(
        self,
        chat_id: str,
        content: str,
        sender_id: str,
        is_bot: bool
    ) -> Message:
        """Append a message and refresh the chat's cached last message.

        Returns:
            The stored message with its server-assigned timestamp

        Raises:
            ValidationError: If content is empty
            NotFoundError: If the chat does not exist (nothing is written)
        """
        if not content:
            raise ValidationError("Message content must not be empty")

        chat_ref = self._chat_ref(chat_id)
        message_ref = chat_ref.child(MESSAGES_SUBCOLLECTION)

        batch = self._store.batch()
        batch.set(message_ref, {
            "content": content,
            "senderId": sender_id,
            "isBot": is_bot,
            "timestamp": SERVER_TIMESTAMP,
        })
        batch.update(chat_ref, {
            "lastMessage": content,
            "lastMessageTimestamp": SERVER_TIMESTAMP,
        })
        try:
            await batch.commit()
        except NotFoundError as e:
            raise NotFoundError(f"Chat {chat_id} not found") from e

        # Read back to pick up the server timestamp
        doc = await self._store.get(message_ref)
        if doc is None:
            raise BackendUnavailableError(f"Message {message_ref.path} missing after write")
        return self._to_message(chat_id, doc)

    async def list_messages(self, chat_id: str) -> list[Message]:
        """Messages of a session in ascending timestamp order."""
        docs = await self._store.query(
            self._messages_collection(chat_id),
            order_by=OrderBy(field="timestamp")
        )
        return [self._to_message(chat_id, doc) for doc in docs]

    async def delete_session(self, chat_id: str) -> int:
        """Delete every message of a session, then the session record, atomically.

        Returns:
            Number of messages deleted

        Raises:
            NotFoundError: If the chat does not exist
        """
        chat_ref = self._chat_ref(chat_id)
        if await self._store.get(chat_ref) is None:
            raise NotFoundError(f"Chat {chat_id} not found")

        messages = await self._store.query(self._messages_collection(chat_id))

        batch = self._store.batch()
        for doc in messages:
            batch.delete(doc.ref)
        batch.delete(chat_ref)
        await batch.commit()

        logger.info("Deleted chat %s and %d messages", chat_id, len(messages))
        return len(messages)
