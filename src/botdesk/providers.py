"""Provider factory functions.

Centralizes creation of the document store, identity provider and LLM
provider from Settings. Hides configuration details from BotdeskClient.
"""

import logging

from .config import Settings
from .errors import ValidationError
from .identity import IdentityProvider, create_identity_provider
from .llm import LLMProvider, create_llm_provider
from .storage import DocumentStore, create_document_store

logger = logging.getLogger(__name__)


def get_store(settings: Settings) -> DocumentStore:
    """Create the configured document store (not yet connected)."""
    if settings.store == "firestore":
        return create_document_store(
            "firestore",
            project=settings.firestore_project,
            database=settings.firestore_database
        )

    if settings.store == "postgres":
        return create_document_store(
            "postgres",
            host=settings.postgres_host,
            port=settings.postgres_port,
            database=settings.postgres_db,
            user=settings.postgres_user,
            password=settings.postgres_password
        )

    return create_document_store(settings.store)


def get_identity(settings: Settings) -> IdentityProvider:
    """Create the configured identity provider.

    Raises:
        ValidationError: If firebase is selected without a project id
    """
    if settings.identity == "firebase":
        if not settings.firebase_project:
            raise ValidationError("FIREBASE_PROJECT (or FIRESTORE_PROJECT) is not set")
        return create_identity_provider("firebase", project_id=settings.firebase_project)

    return create_identity_provider(settings.identity, user=settings.local_user)


def get_llm(settings: Settings) -> LLMProvider | None:
    """Create the configured LLM provider, or None if its API key is missing."""
    if settings.llm_provider == "openai":
        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY not set, completions disabled")
            return None
        return create_llm_provider(
            "openai",
            api_key=settings.openai_api_key,
            model=settings.openai_chat_model,
            base_url=settings.openai_base_url
        )

    if settings.llm_provider == "deepseek":
        if not settings.deepseek_api_key:
            logger.warning("DEEPSEEK_API_KEY not set, completions disabled")
            return None
        return create_llm_provider(
            "deepseek",
            api_key=settings.deepseek_api_key,
            model=settings.deepseek_model
        )

    logger.error("Unknown LLM provider: %s", settings.llm_provider)
    return None


def require_llm(settings: Settings) -> LLMProvider:
    """Get the LLM provider, raising if it is not configured.

    Raises:
        ValidationError: If no provider could be created
    """
    llm = get_llm(settings)
    if llm is None:
        raise ValidationError(f"LLM provider '{settings.llm_provider}' is not configured")
    return llm
