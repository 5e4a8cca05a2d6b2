"""
Base Exception Class

The base exception every status bot error inherits from, plus the
ErrorKind tag used to route errors to recovery actions.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Tag attached at raise time; recovery matches on this, never on message text."""

    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    RATE_LIMIT = "rate_limit"
    CONNECTION = "connection"
    MEMORY = "memory"
    FILESYSTEM = "filesystem"
    STORAGE = "storage"
    UNKNOWN = "unknown"


class StatusBotError(Exception):
    """
    Base exception for all status bot errors.

    Attributes:
        message: Error message
        request_id: Request ID for correlation (if available)
        details: Additional error details (dict)
        kind: ErrorKind tag, overridden per subclass

    Example:
        raise UpstreamUnavailableError(
            "All endpoints failed for API: warframe",
            details={"api": "warframe", "endpoints_tried": 2}
        )
    """

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self, message: str, request_id: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.request_id = request_id
        self.details = (details or {}).copy()
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging/API responses.

        Returns:
            Dict with error_type, kind, message, request_id, and details
        """
        return {
            "error_type": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "request_id": self.request_id,
            "details": self.details,
        }

    def with_suggestion(self, suggestion: str) -> "StatusBotError":
        """Add a suggestion to help users fix the error."""
        self.details["suggestion"] = suggestion
        return self

    def with_context(self, **context) -> "StatusBotError":
        """Add additional context to the error details."""
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        request_id_str = f", request_id='{self.request_id}'" if self.request_id else ""
        return f"{self.__class__.__name__}(message='{self.message}'{request_id_str}{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        request_id: str | None = None,
        **details
    ) -> "StatusBotError":
        """
        Create an error from another exception.

        Example:
            >>> try:
            ...     response = await client.get(url)
            ... except httpx.ConnectError as e:
            ...     raise TransportError.from_exception(e, url=url)
        """
        error_message = message or str(exc) or exc.__class__.__name__
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details
        }
        return cls(error_message, request_id=request_id, details=error_details)


class ConfigurationError(StatusBotError):
    """Raised when configuration is invalid or an API name is not registered."""

    kind = ErrorKind.CONFIGURATION
