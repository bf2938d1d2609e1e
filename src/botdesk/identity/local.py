"""Local identity provider: trusts the user it is given."""

import logging

from ..errors import ValidationError
from .base import IdentityProvider
from .models import User

logger = logging.getLogger(__name__)


class LocalIdentityProvider(IdentityProvider):
    """Identity provider for tests and trusted single-user processes.

    sign_in accepts a User or a bare user id.
    """

    def __init__(self, user: User | str | None = None):
        super().__init__()
        if user is not None:
            self._current_user = self._coerce(user)

    @staticmethod
    def _coerce(credential: User | str) -> User:
        if isinstance(credential, User):
            return credential
        if isinstance(credential, str) and credential.strip():
            return User(id=credential.strip())
        raise ValidationError("A user id is required to sign in")

    async def sign_in(self, credential: User | str) -> User:
        user = self._coerce(credential)
        self._current_user = user
        logger.info("Signed in user %s", user.id)
        return user

    @property
    def provider_type(self) -> str:
        return "local"
