"""Identity module for botdesk.

Provides the signed-in user to the rest of the package.
"""

from .base import IdentityProvider
from .factory import create_identity_provider
from .local import LocalIdentityProvider
from .models import User

__all__ = [
    "IdentityProvider",
    "LocalIdentityProvider",
    "User",
    "create_identity_provider",
]
