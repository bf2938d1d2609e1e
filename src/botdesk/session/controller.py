"""Session controller: drives one user's chat view of one bot.

The controller owns the view state (bot, session list, selected session,
message list, draft) and mutates it in response to user actions, mirroring
what the chat store holds. Subscribers receive a ControllerSnapshot after
every change.

Phases:
    UNINITIALIZED -> LOADING -> [CREATING_FIRST_SESSION] -> MESSAGES_LOADING -> READY
    LOADING -> ERROR when the bot cannot be loaded
    any -> CLOSED on close()

Within READY the ``sending`` guard toggles between idle and in flight.
Every operation catches BotdeskError at its boundary, records it on
``error`` and releases its guard; nothing is retried.
"""

import logging
from collections.abc import Callable

from ..bots import Bot, BotRegistry, ShareInvite, build_share_invite, build_share_url
from ..chats import Chat, ChatStore, Message
from ..errors import BotdeskError, NotFoundError, ValidationError
from ..identity import User
from ..llm import CompletionGateway
from .guards import InFlightGuard
from .models import ControllerPhase, ControllerSnapshot, ViewMessage
from .optimistic import ActionResult, OptimisticList, Outcome, SendResult

logger = logging.getLogger(__name__)

Listener = Callable[[ControllerSnapshot], None]


class SessionController:
    """Loads, selects, creates and deletes sessions and runs the send cycle."""

    def __init__(
        self,
        user: User,
        registry: BotRegistry,
        chat_store: ChatStore,
        gateway: CompletionGateway,
        share_base_url: str | None = None
    ):
        self._user = user
        self._registry = registry
        self._chats = chat_store
        self._gateway = gateway
        self._share_base_url = share_base_url

        self.phase = ControllerPhase.UNINITIALIZED
        self.bot: Bot | None = None
        self.chats: list[Chat] = []
        self.selected_chat_id: str | None = None
        self.draft = ""
        self.error: BotdeskError | None = None
        self._messages: OptimisticList[ViewMessage] = OptimisticList()

        self._creating_guard = InFlightGuard("creating_chat")
        self._deleting_guard = InFlightGuard("deleting_chat")
        self._sending_guard = InFlightGuard("sending")
        self._loading_guard = InFlightGuard("loading_messages")

        # Bumped whenever the view or selection changes so that late results
        # for a superseded view or selection are dropped
        self._view_token = 0
        self._selection_token = 0

        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------ #
    # State access
    # ------------------------------------------------------------------ #

    @property
    def user(self) -> User:
        return self._user

    @property
    def messages(self) -> list[ViewMessage]:
        return self._messages.items

    @property
    def sending(self) -> bool:
        return self._sending_guard.busy

    @property
    def loading_messages(self) -> bool:
        return self._loading_guard.busy

    @property
    def creating_chat(self) -> bool:
        return self._creating_guard.busy

    @property
    def deleting_chat_id(self) -> str | None:
        return self._deleting_guard.key if self._deleting_guard.busy else None

    @property
    def closed(self) -> bool:
        return self.phase == ControllerPhase.CLOSED

    def snapshot(self) -> ControllerSnapshot:
        return ControllerSnapshot(
            phase=self.phase,
            bot=self.bot,
            chats=tuple(self.chats),
            selected_chat_id=self.selected_chat_id,
            messages=tuple(self._messages.items),
            draft=self.draft,
            sending=self.sending,
            loading_messages=self.loading_messages,
            creating_chat=self.creating_chat,
            deleting_chat_id=self.deleting_chat_id,
            error=self.error
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_draft(self, text: str) -> None:
        self.draft = text
        self._publish()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _publish(self) -> None:
        if self.closed:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener %r failed", listener)

    def _set_phase(self, phase: ControllerPhase) -> None:
        if phase != self.phase:
            logger.debug("Controller phase %s -> %s", self.phase.value, phase.value)
            self.phase = phase

    def _record_error(self, error: BotdeskError, action: str) -> None:
        logger.error("%s failed: %s", action, error)
        self.error = error

    def _next_selection(self) -> int:
        self._selection_token += 1
        # A load for the previous selection can no longer release this guard
        self._loading_guard.reset()
        return self._selection_token

    def _update_chat_summary(self, chat_id: str, message: Message) -> None:
        for i, chat in enumerate(self.chats):
            if chat.id == chat_id:
                self.chats[i] = chat.model_copy(update={
                    "last_message": message.content,
                    "last_message_timestamp": message.timestamp,
                })
                return

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    async def open(self, bot_id: str) -> ActionResult:
        """Enter a bot's chat view.

        Loads the bot and the user's sessions with it, creates a first
        session when there are none, and selects the most recent one.
        """
        if self.closed:
            return ActionResult.rejected(BotdeskError("Controller is closed"))

        self._view_token += 1
        view = self._view_token
        self._next_selection()
        # Operations of the previous view keep running but lose their guards
        for guard in (self._creating_guard, self._deleting_guard, self._sending_guard):
            guard.reset()
        self.bot = None
        self.chats = []
        self.selected_chat_id = None
        self.error = None
        self._messages.clear()
        self._set_phase(ControllerPhase.LOADING)
        self._publish()

        try:
            bot = await self._registry.get(bot_id)
            if view != self._view_token:
                return ActionResult.discarded()
            self.bot = bot

            chats = await self._chats.list_sessions(self._user.id, bot_id)
            if view != self._view_token:
                return ActionResult.discarded()
            self.chats = chats

            if not chats:
                self._set_phase(ControllerPhase.CREATING_FIRST_SESSION)
                self._creating_guard.acquire(bot_id)
                creating = self._creating_guard.generation
                self._publish()
                try:
                    chat_id = await self._chats.create_session(self._user.id, bot_id)
                    chat = await self._chats.get_session(chat_id)
                finally:
                    self._creating_guard.release(creating)
                if view != self._view_token:
                    return ActionResult.discarded()
                self.chats = [chat]
        except BotdeskError as e:
            if view != self._view_token:
                return ActionResult.discarded()
            self._record_error(e, f"Opening bot {bot_id}")
            self._set_phase(ControllerPhase.ERROR)
            self._publish()
            return ActionResult.failed(e)

        return await self.select(self.chats[0].id)

    async def select(self, chat_id: str) -> ActionResult:
        """Make a session current and load its messages."""
        if self.closed:
            return ActionResult.rejected(BotdeskError("Controller is closed"))
        if self.bot is None:
            return ActionResult.rejected(BotdeskError("No bot is open"))

        selection = self._next_selection()
        self.selected_chat_id = chat_id
        self._messages.clear()
        self._loading_guard.acquire(chat_id)
        loading = self._loading_guard.generation
        self._set_phase(ControllerPhase.MESSAGES_LOADING)
        self._publish()

        try:
            messages = await self._chats.list_messages(chat_id)
        except BotdeskError as e:
            if selection != self._selection_token:
                return ActionResult.discarded()
            self._loading_guard.release(loading)
            self._record_error(e, f"Loading messages of chat {chat_id}")
            self._set_phase(ControllerPhase.READY)
            self._publish()
            return ActionResult.failed(e)

        if selection != self._selection_token:
            return ActionResult.discarded()

        self._messages.replace_all([ViewMessage.from_message(m) for m in messages])
        self._loading_guard.release(loading)
        self._set_phase(ControllerPhase.READY)
        self._publish()
        return ActionResult.confirmed(len(messages))

    async def submit(self, text: str | None = None) -> SendResult:
        """Send a message in the selected session and append the bot's reply.

        The user message is shown immediately; if writing it, getting the
        completion or writing the reply fails, it is taken out again and
        the result is REVERTED.
        """
        content = self.draft if text is None else text

        if self.closed:
            return SendResult.rejected(BotdeskError("Controller is closed"))
        if not content.strip():
            return SendResult.rejected(ValidationError("Message must not be empty"))
        if self.phase != ControllerPhase.READY or self.bot is None or self.selected_chat_id is None:
            return SendResult.rejected(BotdeskError("No chat session is ready"))
        if not self._sending_guard.acquire(self.selected_chat_id):
            return SendResult.rejected(BotdeskError("A message is already being sent"))

        sending = self._sending_guard.generation
        bot = self.bot
        chat_id = self.selected_chat_id
        view = self._view_token
        selection = self._selection_token

        pending = self._messages.apply(ViewMessage(content=content, is_bot=False, pending=True))
        self.draft = ""
        self.error = None
        self._publish()

        error: BotdeskError | None = None
        try:
            stored_user = await self._chats.append_message(chat_id, content, self._user.id, False)
            reply = await self._gateway.complete(bot.system_prompt, content)
            stored_reply = await self._chats.append_message(chat_id, reply, bot.id, True)
        except BotdeskError as e:
            error = e
        except BaseException:
            if view == self._view_token:
                self._messages.revert(pending)
                self._publish()
            raise
        finally:
            self._sending_guard.release(sending)

        if error is not None:
            if view != self._view_token or selection != self._selection_token:
                logger.info("Send in chat %s failed after leaving it: %s", chat_id, error)
                return SendResult(outcome=Outcome.DISCARDED, error=error, content=content)
            self._messages.revert(pending)
            self._record_error(error, f"Sending message in chat {chat_id}")
            self._publish()
            return SendResult(outcome=Outcome.REVERTED, error=error, content=content)

        if view != self._view_token:
            return SendResult(outcome=Outcome.DISCARDED, content=content, reply=reply)

        self._update_chat_summary(chat_id, stored_reply)
        if selection != self._selection_token:
            # Stored, but the user has moved to another session
            self._publish()
            return SendResult(outcome=Outcome.DISCARDED, content=content, reply=reply)

        self._messages.confirm(pending, ViewMessage.from_message(stored_user))
        self._messages.append(ViewMessage.from_message(stored_reply))
        self._publish()
        return SendResult(outcome=Outcome.CONFIRMED, content=content, reply=reply)

    async def new_chat(self) -> ActionResult:
        """Create a session, put it first in the list and select it."""
        if self.closed:
            return ActionResult.rejected(BotdeskError("Controller is closed"))
        if self.bot is None:
            return ActionResult.rejected(BotdeskError("No bot is open"))
        if not self._creating_guard.acquire(self.bot.id):
            return ActionResult.rejected(BotdeskError("A chat is already being created"))

        creating = self._creating_guard.generation
        view = self._view_token
        self._publish()

        try:
            chat_id = await self._chats.create_session(self._user.id, self.bot.id)
            chat = await self._chats.get_session(chat_id)
        except BotdeskError as e:
            self._creating_guard.release(creating)
            if view != self._view_token:
                return ActionResult.discarded()
            self._record_error(e, "Creating chat")
            self._publish()
            return ActionResult.failed(e)

        self._creating_guard.release(creating)
        if view != self._view_token:
            return ActionResult.discarded()

        self.chats.insert(0, chat)
        self._next_selection()
        self.selected_chat_id = chat.id
        self._messages.clear()
        self.error = None
        self._set_phase(ControllerPhase.READY)
        self._publish()
        return ActionResult.confirmed(chat.id)

    async def delete_chat(self, chat_id: str) -> ActionResult:
        """Delete a session. The last remaining session cannot be deleted."""
        if self.closed:
            return ActionResult.rejected(BotdeskError("Controller is closed"))
        if len(self.chats) <= 1:
            return ActionResult.rejected(BotdeskError("The last chat of a bot cannot be deleted"))
        if all(chat.id != chat_id for chat in self.chats):
            return ActionResult.rejected(NotFoundError(f"Chat {chat_id} is not in this view"))
        if not self._deleting_guard.acquire(chat_id):
            return ActionResult.rejected(BotdeskError("Another chat is being deleted"))

        deleting = self._deleting_guard.generation
        view = self._view_token
        self._publish()

        try:
            await self._chats.delete_session(chat_id)
        except BotdeskError as e:
            self._deleting_guard.release(deleting)
            if view != self._view_token:
                return ActionResult.discarded()
            self._record_error(e, f"Deleting chat {chat_id}")
            self._publish()
            return ActionResult.failed(e)

        self._deleting_guard.release(deleting)
        if view != self._view_token:
            return ActionResult.discarded()

        self.chats = [chat for chat in self.chats if chat.id != chat_id]
        if self.selected_chat_id == chat_id:
            if self.chats:
                await self.select(self.chats[0].id)
            else:
                self._next_selection()
                self.selected_chat_id = None
                self._messages.clear()
        self._publish()
        return ActionResult.confirmed(chat_id)

    def share_link(self) -> str:
        """Share URL of the open bot.

        Raises:
            NotFoundError: If no bot is open
            ValidationError: If no share base URL is configured
        """
        if self.bot is None:
            raise NotFoundError("No bot is open")
        if not self._share_base_url:
            raise ValidationError("No share base URL configured")
        return build_share_url(self._share_base_url, self.bot.id)

    def share_invite(self) -> ShareInvite:
        """Title, text and URL for a share sheet."""
        if self.bot is None:
            raise NotFoundError("No bot is open")
        if not self._share_base_url:
            raise ValidationError("No share base URL configured")
        return build_share_invite(self._share_base_url, self.bot)

    def close(self) -> None:
        """Leave the view. Operations still in flight finish without touching state."""
        if self.closed:
            return
        self._view_token += 1
        self._selection_token += 1
        for guard in (
            self._creating_guard, self._deleting_guard,
            self._sending_guard, self._loading_guard
        ):
            guard.reset()
        self._listeners.clear()
        self._set_phase(ControllerPhase.CLOSED)
        logger.debug("Controller for user %s closed", self._user.id)
