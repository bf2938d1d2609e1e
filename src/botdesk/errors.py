"""Error taxonomy for botdesk.

Every failure raised by the registry, chat store, gateway or storage
backends is a subclass of BotdeskError, so callers at an operation
boundary can catch one type and turn it into visible state.
"""


class BotdeskError(Exception):
    """Base class for all botdesk errors."""


class NotFoundError(BotdeskError):
    """A bot, chat or document does not exist."""


class PermissionDeniedError(BotdeskError):
    """The caller is not allowed to perform the operation."""


class NotAuthenticatedError(PermissionDeniedError):
    """No user is signed in."""


class BackendUnavailableError(BotdeskError):
    """The document store could not be reached or failed the request."""


class CompletionFailedError(BotdeskError):
    """The completion call failed or returned unusable content."""


class ValidationError(BotdeskError, ValueError):
    """A required field is missing or empty."""
