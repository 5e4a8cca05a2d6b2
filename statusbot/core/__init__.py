"""
Core Module

Foundational components: configuration, logging, exceptions, the
resilience layer and the chat-gateway protocols.
"""

from .exceptions import (
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
from .logging import (
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    set_request_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_request_id",
    "get_request_id",
    "clear_request_id",
    "log_stage",
    "StatusBotError",
    "ErrorKind",
    "classify_error",
    "ConfigurationError",
    "TransportError",
    "TransportTimeoutError",
    "UpstreamUnavailableError",
    "RateLimitExceededError",
    "ConnectivityError",
    "StorageError",
]
