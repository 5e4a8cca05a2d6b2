"""
Upstream Exceptions

Errors raised while talking to third-party game-status endpoints.
"""

from typing import Any

from statusbot.core.exceptions.base import ErrorKind, StatusBotError


class TransportError(StatusBotError):
    """
    A single HTTP attempt failed (network error, timeout or non-2xx status).

    Recovered locally: the fetcher retries it, then the API manager moves on
    to the next endpoint. Callers only see it as UpstreamUnavailableError.last_error.
    """

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        request_id: str | None = None,
        details: dict[str, Any] | None = None,
        url: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, request_id=request_id, details=details)
        self.url = url if url is not None else self.details.get("url")
        self.status_code = status_code
        if self.url is not None:
            self.details.setdefault("url", self.url)
        if status_code is not None:
            self.details.setdefault("status_code", status_code)


class TransportTimeoutError(TransportError):
    """The attempt did not complete within its timeout."""
    pass


class UpstreamUnavailableError(StatusBotError):
    """
    Every endpoint of an API was skipped or failed and nothing was cached.

    `last_error` holds the most recent endpoint failure for diagnostics; it is
    also chained as __cause__ when raised by the API manager.
    """

    kind = ErrorKind.UPSTREAM_UNAVAILABLE

    def __init__(
        self,
        message: str,
        request_id: str | None = None,
        details: dict[str, Any] | None = None,
        last_error: Exception | None = None,
    ):
        super().__init__(message, request_id=request_id, details=details)
        self.last_error = last_error
        if last_error is not None:
            self.details.setdefault("last_error", str(last_error))
