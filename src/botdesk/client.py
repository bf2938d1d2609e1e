"""BotdeskClient: the object that owns every collaborator and their lifecycle."""

import logging
from typing import Any

from .bots import BotRegistry, PendingShares
from .chats import ChatStore
from .config import Settings
from .identity import IdentityProvider
from .llm import CompletionGateway, LLMProvider
from .providers import get_identity, get_store, require_llm
from .session import SessionController
from .storage import DocumentStore

logger = logging.getLogger(__name__)


class BotdeskClient:
    """
    Wires identity, document store, completion gateway and the stores built on them.

    Parts not passed explicitly are created from ``settings`` (or from the
    environment when no settings are given). Nothing is connected until
    connect() is called; close() releases the store and the LLM client.

    Example:
        >>> async with BotdeskClient(settings) as client:
        ...     await client.identity.sign_in("alice")
        ...     controller = client.controller()
        ...     await controller.open(bot_id)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        store: DocumentStore | None = None,
        identity: IdentityProvider | None = None,
        llm: LLMProvider | None = None,
        share_base_url: str | None = None
    ):
        if settings is None and (store is None or identity is None or llm is None):
            settings = Settings.from_env()
        self.settings = settings

        self.store = store if store is not None else get_store(settings)
        self.identity = identity if identity is not None else get_identity(settings)
        self.gateway = CompletionGateway(llm if llm is not None else require_llm(settings))

        self.chats = ChatStore(self.store)
        self.registry = BotRegistry(self.store, self.chats)
        self.pending_shares = PendingShares()

        if share_base_url is None and settings is not None:
            share_base_url = settings.share_base_url
        self.share_base_url = share_base_url

        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        """Connect the document store."""
        if self._connected:
            return
        await self.store.connect()
        self._connected = True
        logger.info(
            "Botdesk client connected (store=%s, identity=%s)",
            self.store.backend_type, self.identity.provider_type
        )

    async def close(self) -> None:
        """Disconnect the store and close the completion client."""
        try:
            await self.gateway.close()
        finally:
            await self.store.disconnect()
            self._connected = False
            logger.info("Botdesk client closed")

    async def __aenter__(self) -> "BotdeskClient":
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def controller(self) -> SessionController:
        """A session controller for the signed-in user.

        Raises:
            NotAuthenticatedError: If nobody is signed in
        """
        return SessionController(
            user=self.identity.require_user(),
            registry=self.registry,
            chat_store=self.chats,
            gateway=self.gateway,
            share_base_url=self.share_base_url
        )
