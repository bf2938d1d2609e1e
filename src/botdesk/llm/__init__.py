from .base import LLMProvider
from .factory import create_llm_provider
from .gateway import CompletionGateway
from .models import ChatMessage, LLMResponse, Role
from .providers import DeepSeekProvider, OpenAIProvider

__all__ = [
    "LLMProvider",
    "create_llm_provider",
    "CompletionGateway",
    "ChatMessage",
    "LLMResponse",
    "Role",
    "DeepSeekProvider",
    "OpenAIProvider",
]
