"""Completion gateway: the one call that turns a user utterance into a reply."""

import logging

from ..errors import CompletionFailedError
from .base import LLMProvider
from .models import ChatMessage, Role

logger = logging.getLogger(__name__)


class CompletionGateway:
    """Sends a two-message context to an LLM provider and returns the reply.

    The context is always exactly [system prompt, user utterance]; earlier
    turns of the conversation are not included. Every failure, whatever
    its cause, is raised as CompletionFailedError and never retried.
    """

    def __init__(
        self,
        provider: LLMProvider,
        model: str | None = None,
        temperature: float | None = None
    ):
        self._provider = provider
        self._model = model
        self._temperature = temperature

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    @staticmethod
    def build_messages(system_prompt: str, user_utterance: str) -> list[ChatMessage]:
        """Build the request context for one completion."""
        return [
            ChatMessage(role=Role.SYSTEM, content=system_prompt),
            ChatMessage(role=Role.USER, content=user_utterance),
        ]

    async def complete(self, system_prompt: str, user_utterance: str) -> str:
        """Request one reply.

        Args:
            system_prompt: The bot's system prompt
            user_utterance: The text the user just submitted

        Returns:
            The generated reply text

        Raises:
            CompletionFailedError: On network failure, non-success status,
                or a response without usable content
        """
        messages = self.build_messages(system_prompt, user_utterance)
        try:
            response = await self._provider.chat_completion(
                messages,
                model=self._model,
                temperature=self._temperature
            )
        except Exception as e:
            logger.error("Completion request failed: %s", e)
            raise CompletionFailedError(f"Completion failed: {e}") from e

        if not response.content.strip():
            logger.error("Completion returned empty content (model=%s)", response.model)
            raise CompletionFailedError("Completion returned empty content")

        logger.debug("Completion succeeded (model=%s, usage=%s)", response.model, response.usage)
        return response.content

    async def close(self) -> None:
        await self._provider.close()
