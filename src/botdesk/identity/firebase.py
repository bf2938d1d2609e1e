"""Firebase identity provider: verifies Firebase ID tokens."""

import asyncio
import logging
from typing import Any

from google.auth import exceptions as auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from ..errors import BackendUnavailableError, NotAuthenticatedError
from .base import IdentityProvider
from .models import User

logger = logging.getLogger(__name__)


class FirebaseIdentityProvider(IdentityProvider):
    """Signs users in from a Firebase Authentication ID token.

    The token is verified against Google's public keys with the Firebase
    project id as audience; the token's ``sub`` claim becomes the user id.
    """

    def __init__(self, project_id: str, request: Any | None = None):
        super().__init__()
        self._project_id = project_id
        self._request = request or google_requests.Request()

    def _verify(self, token: str) -> dict[str, Any]:
        return id_token.verify_firebase_token(token, self._request, audience=self._project_id)

    async def sign_in(self, credential: str) -> User:
        """Verify an ID token and make its user current.

        Raises:
            NotAuthenticatedError: If the token is invalid or expired
            BackendUnavailableError: If Google's certificates cannot be fetched
        """
        if not credential:
            raise NotAuthenticatedError("An ID token is required to sign in")

        try:
            # Verification fetches certificates over blocking HTTP
            claims = await asyncio.to_thread(self._verify, credential)
        except ValueError as e:
            logger.warning("ID token verification failed: %s", e)
            raise NotAuthenticatedError(f"Invalid ID token: {e}") from e
        except auth_exceptions.TransportError as e:
            logger.error("Could not reach Google to verify ID token: %s", e)
            raise BackendUnavailableError(f"Token verification unavailable: {e}") from e

        if not claims or not claims.get("sub"):
            raise NotAuthenticatedError("ID token has no subject")

        user = User(
            id=claims["sub"],
            email=claims.get("email"),
            display_name=claims.get("name")
        )
        self._current_user = user
        logger.info("Signed in Firebase user %s", user.id)
        return user

    @property
    def provider_type(self) -> str:
        return "firebase"
