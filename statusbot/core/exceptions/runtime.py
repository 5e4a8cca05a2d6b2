"""
Runtime Exceptions

Rate limiting, gateway connectivity and local storage failures.
"""

from statusbot.core.exceptions.base import ErrorKind, StatusBotError


class RateLimitExceededError(StatusBotError):
    """
    Raised when an identifier exceeds its rate limit policy.

    details carries limit, remaining and reset_time_ms so handlers can emit
    Retry-After.
    """

    kind = ErrorKind.RATE_LIMIT


class ConnectivityError(StatusBotError):
    """The chat gateway connection dropped or could not be established."""

    kind = ErrorKind.CONNECTION


class StorageError(StatusBotError):
    """Reading or writing the notification preference file failed."""

    kind = ErrorKind.STORAGE
