from abc import ABC, abstractmethod
from typing import Any

from .models import ChatMessage, LLMResponse


class LLMProvider(ABC):
    """A chat completion endpoint.

    CompletionGateway is the only caller; it sends one request per user
    message and turns any exception raised here into CompletionFailedError.
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Model used when a request names none."""

    @abstractmethod
    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Return the assistant reply to ``messages``.

        Raises on transport errors and on responses without content.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying HTTP client."""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
