"""Pytest configuration and shared fixtures."""
import os
from typing import Any

import pytest

from botdesk.bots import BotRegistry
from botdesk.chats import ChatStore
from botdesk.identity import LocalIdentityProvider, User
from botdesk.llm import ChatMessage, CompletionGateway, LLMProvider, LLMResponse
from botdesk.session import SessionController
from botdesk.storage import InMemoryDocumentStore


class FakeLLMProvider(LLMProvider):
    """LLM provider double that answers from a queue and records requests."""

    def __init__(self, replies: list[Any] | None = None, model: str = "fake-model"):
        self._model = model
        self.replies = list(replies or [])
        self.requests: list[list[ChatMessage]] = []
        self.closed = False

    @property
    def model(self) -> str:
        return self._model

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        self.requests.append(list(messages))
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, BaseException):
            raise reply
        return LLMResponse(content=reply, model=model or self._model)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "openai": os.getenv("OPENAI_API_KEY"),
        "deepseek": os.getenv("DEEPSEEK_API_KEY")
    }


@pytest.fixture(scope="session")
def postgres_config():
    """Return PostgreSQL configuration."""
    return {
        "host": os.getenv("POSTGRES_HOST", "localhost"),
        "port": int(os.getenv("POSTGRES_PORT", "5432")),
        "database": os.getenv("POSTGRES_DB", "botdesk"),
        "user": os.getenv("POSTGRES_USER", "botdesk"),
        "password": os.getenv("POSTGRES_PASSWORD", "botdesk")
    }


@pytest.fixture
async def store():
    """A connected in-memory document store."""
    backend = InMemoryDocumentStore()
    await backend.connect()
    yield backend
    await backend.disconnect()


@pytest.fixture
def chat_store(store):
    return ChatStore(store)


@pytest.fixture
def registry(store, chat_store):
    return BotRegistry(store, chat_store)


@pytest.fixture
def alice():
    return User(id="alice", email="alice@example.com")


@pytest.fixture
def bob():
    return User(id="bob")


@pytest.fixture
def identity(alice):
    return LocalIdentityProvider(alice)


@pytest.fixture
def llm():
    return FakeLLMProvider()


@pytest.fixture
def gateway(llm):
    return CompletionGateway(llm)


@pytest.fixture
def controller(alice, registry, chat_store, gateway):
    ctrl = SessionController(
        user=alice,
        registry=registry,
        chat_store=chat_store,
        gateway=gateway,
        share_base_url="https://bots.example.com"
    )
    yield ctrl
    ctrl.close()


@pytest.fixture
def llm_factory():
    """The FakeLLMProvider class, for tests that script their own replies."""
    return FakeLLMProvider
