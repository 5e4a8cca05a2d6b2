"""
Unit Tests for Core Exceptions

Tests the exception hierarchy, serialisation and ErrorKind classification.
"""

import errno

import pytest

from statusbot.core.exceptions import (
    ConfigurationError,
    ConnectivityError,
    ErrorKind,
    RateLimitExceededError,
    StatusBotError,
    StorageError,
    TransportError,
    TransportTimeoutError,
    UpstreamUnavailableError,
    classify_error,
)


@pytest.mark.unit
class TestStatusBotError:
    """Test the base exception class."""

    def test_base_error_default_values(self):
        """Test default values for StatusBotError."""
        error = StatusBotError("Test")
        assert str(error) == "Test"
        assert error.details == {}
        assert error.request_id is None
        assert error.kind == ErrorKind.UNKNOWN

    def test_details_are_copied(self):
        """Test that the caller's details dict is not mutated."""
        details = {"api": "warframe"}
        error = StatusBotError("x", details=details).with_context(path="/alerts")

        assert details == {"api": "warframe"}
        assert error.details == {"api": "warframe", "path": "/alerts"}

    def test_to_dict(self):
        """Test dictionary conversion for logs and responses."""
        error = ConfigurationError("API configuration not found: x", request_id="req-1", details={"api": "x"})

        assert error.to_dict() == {
            "error_type": "ConfigurationError",
            "kind": "configuration",
            "message": "API configuration not found: x",
            "request_id": "req-1",
            "details": {"api": "x"},
        }

    def test_with_suggestion(self):
        """Test that suggestions land in details."""
        error = ConfigurationError("bad").with_suggestion("Register the API first")
        assert error.details["suggestion"] == "Register the API first"

    def test_from_exception(self):
        """Test wrapping a foreign exception."""
        error = StorageError.from_exception(OSError("disk full"), path="/tmp/x")

        assert isinstance(error, StorageError)
        assert error.message == "disk full"
        assert error.details == {
            "original_error": "OSError",
            "original_message": "disk full",
            "path": "/tmp/x",
        }

    def test_repr(self):
        """Test repr includes details."""
        assert repr(StatusBotError("m", details={"a": 1})) == "StatusBotError(message='m', details={'a': 1})"


@pytest.mark.unit
class TestUpstreamErrors:
    """Test transport and upstream exceptions."""

    def test_transport_error_fields(self):
        """Test that url and status code are exposed and mirrored in details."""
        error = TransportError("HTTP 500: Internal Server Error", url="https://x/alerts", status_code=500)

        assert error.url == "https://x/alerts"
        assert error.status_code == 500
        assert error.details == {"url": "https://x/alerts", "status_code": 500}

    def test_transport_error_from_exception_keeps_url(self):
        """Test that from_exception passes url through details."""
        error = TransportError.from_exception(ConnectionError("refused"), url="https://x")
        assert error.url == "https://x"

    def test_timeout_is_transport_error(self):
        """Test the timeout subclass."""
        assert issubclass(TransportTimeoutError, TransportError)
        assert TransportTimeoutError("t").kind == ErrorKind.TRANSPORT

    def test_unavailable_keeps_last_error(self):
        """Test that the last endpoint failure is kept for diagnostics."""
        last = TransportError("HTTP 503: Service Unavailable")
        error = UpstreamUnavailableError("All endpoints failed for API: warframe", last_error=last)

        assert error.last_error is last
        assert error.details["last_error"] == "HTTP 503: Service Unavailable"


@pytest.mark.unit
class TestClassification:
    """Test ErrorKind routing."""

    @pytest.mark.parametrize(
        "error,kind",
        [
            (ConnectivityError("gateway closed"), ErrorKind.CONNECTION),
            (RateLimitExceededError("slow down"), ErrorKind.RATE_LIMIT),
            (UpstreamUnavailableError("down"), ErrorKind.UPSTREAM_UNAVAILABLE),
            (StorageError("x"), ErrorKind.STORAGE),
            (MemoryError(), ErrorKind.MEMORY),
            (ConnectionResetError(), ErrorKind.CONNECTION),
            (TimeoutError(), ErrorKind.CONNECTION),
            (FileNotFoundError(), ErrorKind.FILESYSTEM),
            (PermissionError(), ErrorKind.FILESYSTEM),
            (OSError(errno.ENOSPC, "No space left on device"), ErrorKind.FILESYSTEM),
            (OSError(errno.EINVAL, "Invalid argument"), ErrorKind.UNKNOWN),
            (ValueError("connection refused"), ErrorKind.UNKNOWN),
        ],
    )
    def test_classify_error(self, error, kind):
        """Test that classification uses types and tags, not message text."""
        assert classify_error(error) == kind
