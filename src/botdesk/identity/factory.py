"""Factory for creating identity providers."""

from typing import Any

from .base import IdentityProvider


def create_identity_provider(provider: str = "local", **config: Any) -> IdentityProvider:
    """Create an identity provider.

    Args:
        provider: Provider type ("local" or "firebase")
        **config: Provider-specific configuration
            For local:
                - user: User | str | None
            For firebase:
                - project_id: str (required)

    Returns:
        IdentityProvider instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing
    """
    provider_lower = provider.lower()

    if provider_lower == "local":
        from .local import LocalIdentityProvider
        return LocalIdentityProvider(**config)

    if provider_lower == "firebase":
        if "project_id" not in config:
            raise TypeError("Firebase identity provider requires 'project_id' in config")
        from .firebase import FirebaseIdentityProvider
        return FirebaseIdentityProvider(**config)

    raise ValueError(
        f"Unsupported identity provider: {provider}. "
        f"Supported providers: local, firebase"
    )
