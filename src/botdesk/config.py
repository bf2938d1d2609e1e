"""Runtime configuration.

Settings are read from environment variables, with a ``.env`` file in the
working directory loaded first when present.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"


class Settings(BaseModel):
    """Configuration for a BotdeskClient."""

    model_config = ConfigDict(frozen=True)

    store: str = "memory"
    firestore_project: str | None = None
    firestore_database: str = "(default)"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "botdesk"
    postgres_user: str = "botdesk"
    postgres_password: str = Field(default="botdesk", repr=False)

    identity: str = "local"
    local_user: str | None = None
    firebase_project: str | None = None

    llm_provider: str = "openai"
    openai_api_key: str | None = Field(default=None, repr=False)
    openai_chat_model: str = DEFAULT_OPENAI_MODEL
    openai_base_url: str | None = None
    deepseek_api_key: str | None = Field(default=None, repr=False)
    deepseek_model: str = "deepseek-chat"

    share_base_url: str = "http://localhost:5173"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from the environment.

        Environment variables:
            BOTDESK_STORE: Document store (memory, firestore, postgres; default: memory)
            FIRESTORE_PROJECT: Google Cloud project for Firestore
            FIRESTORE_DATABASE: Firestore database id (default: (default))
            POSTGRES_HOST: Database host (default: localhost)
            POSTGRES_PORT: Database port (default: 5432)
            POSTGRES_DB: Database name (default: botdesk)
            POSTGRES_USER: Database user (default: botdesk)
            POSTGRES_PASSWORD: Database password (default: botdesk)
            BOTDESK_IDENTITY: Identity provider (local, firebase; default: local)
            BOTDESK_USER: User id signed in at start with the local provider
            FIREBASE_PROJECT: Firebase project id (default: FIRESTORE_PROJECT)
            LLM_PROVIDER: Completion provider (openai, deepseek; default: openai)
            OPENAI_API_KEY: OpenAI API key
            OPENAI_CHAT_MODEL: OpenAI model (default: gpt-3.5-turbo)
            OPENAI_BASE_URL: Alternative OpenAI-compatible endpoint
            DEEPSEEK_API_KEY: DeepSeek API key
            DEEPSEEK_MODEL: DeepSeek model (default: deepseek-chat)
            BOTDESK_SHARE_BASE_URL: Base of share links (default: http://localhost:5173)
            LOG_LEVEL: Log level (default: INFO)
        """
        if dotenv:
            load_dotenv()

        firestore_project = os.getenv("FIRESTORE_PROJECT") or None
        return cls(
            store=os.getenv("BOTDESK_STORE", "memory").lower(),
            firestore_project=firestore_project,
            firestore_database=os.getenv("FIRESTORE_DATABASE", "(default)"),
            postgres_host=os.getenv("POSTGRES_HOST", "localhost"),
            postgres_port=int(os.getenv("POSTGRES_PORT", "5432")),
            postgres_db=os.getenv("POSTGRES_DB", "botdesk"),
            postgres_user=os.getenv("POSTGRES_USER", "botdesk"),
            postgres_password=os.getenv("POSTGRES_PASSWORD", "botdesk"),
            identity=os.getenv("BOTDESK_IDENTITY", "local").lower(),
            local_user=os.getenv("BOTDESK_USER") or None,
            firebase_project=os.getenv("FIREBASE_PROJECT") or firestore_project,
            llm_provider=os.getenv("LLM_PROVIDER", "openai").lower(),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_chat_model=os.getenv("OPENAI_CHAT_MODEL", DEFAULT_OPENAI_MODEL),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            deepseek_api_key=os.getenv("DEEPSEEK_API_KEY") or None,
            deepseek_model=os.getenv("DEEPSEEK_MODEL", "deepseek-chat"),
            share_base_url=os.getenv("BOTDESK_SHARE_BASE_URL", "http://localhost:5173"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper()
        )
