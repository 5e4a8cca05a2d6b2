"""
Exception Module

Structured exception hierarchy for the status bot.

Module Structure:
-----------------
- **base.py**: StatusBotError base class, ErrorKind tag, ConfigurationError
- **upstream.py**: TransportError, TransportTimeoutError, UpstreamUnavailableError
- **runtime.py**: RateLimitExceededError, ConnectivityError, StorageError
- **classification.py**: classify_error() for recovery routing

Usage:
------
```python
from statusbot.core.exceptions import UpstreamUnavailableError

try:
    data = await api_manager.request("warframe", "/alerts")
except UpstreamUnavailableError as e:
    logger.error("Game status unavailable", last_error=str(e.last_error))
```
"""

from statusbot.core.exceptions.base import ConfigurationError, ErrorKind, StatusBotError
from statusbot.core.exceptions.classification import classify_error
from statusbot.core.exceptions.runtime import (
    ConnectivityError,
    RateLimitExceededError,
    StorageError,
)
from statusbot.core.exceptions.upstream import (
    TransportError,
    TransportTimeoutError,
    UpstreamUnavailableError,
)

__all__ = [
    # Base
    "StatusBotError",
    "ErrorKind",
    "ConfigurationError",
    "classify_error",
    # Upstream
    "TransportError",
    "TransportTimeoutError",
    "UpstreamUnavailableError",
    # Runtime
    "RateLimitExceededError",
    "ConnectivityError",
    "StorageError",
]
