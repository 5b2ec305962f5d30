"""Custom exception hierarchy for chocan."""


class ChocAnError(Exception):
    """Base exception for all chocan errors."""


class ValidationError(ChocAnError):
    """Raised when input, paging, sort or search options are invalid."""


class EntityNotFoundError(ChocAnError):
    """Raised when a referenced entity does not exist."""


class ConcurrencyConflictError(ChocAnError):
    """Raised when an update collides with a concurrent modification or delete."""


class StoreUnavailableError(ChocAnError):
    """Raised when the underlying record store cannot be reached."""


class ConfigurationError(ChocAnError):
    """Raised when configuration is invalid or missing."""


class NotificationError(ChocAnError):
    """Raised when publishing to the notification channel fails."""
