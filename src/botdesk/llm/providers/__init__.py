from .deepseek import DeepSeekProvider
from .openai import DEFAULT_OPENAI_MODEL, OpenAIProvider

__all__ = ["DEFAULT_OPENAI_MODEL", "DeepSeekProvider", "OpenAIProvider"]
