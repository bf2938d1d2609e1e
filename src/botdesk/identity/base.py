"""Abstract base class for identity providers.

The rest of the package only ever reads the current user's id; signing in
and out, token handling and credential storage stay behind this interface.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..errors import NotAuthenticatedError
from .models import User


class IdentityProvider(ABC):
    """Abstract identity provider holding the current session's user."""

    def __init__(self) -> None:
        self._current_user: User | None = None

    @property
    def current_user(self) -> User | None:
        """The signed-in user, or None."""
        return self._current_user

    @property
    def is_authenticated(self) -> bool:
        return self._current_user is not None

    def require_user(self) -> User:
        """Return the signed-in user.

        Raises:
            NotAuthenticatedError: If nobody is signed in
        """
        if self._current_user is None:
            raise NotAuthenticatedError("Sign-in required")
        return self._current_user

    @abstractmethod
    async def sign_in(self, credential: Any) -> User:
        """Authenticate and make the user current."""

    async def sign_out(self) -> None:
        """End the session."""
        self._current_user = None

    @property
    @abstractmethod
    def provider_type(self) -> str:
        """Get the provider type identifier."""
