"""
System Constants and Enumerations

Defaults shared by the resilience layer, the rate limiter and the
status server. Values that operators tune live in settings.py instead.
"""

from enum import Enum

# ============================================================================
# Upstream request defaults (milliseconds)
# ============================================================================

DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_MAX_RETRIES = 3
DEFAULT_BREAKER_THRESHOLD = 5
DEFAULT_BREAKER_RESET_MS = 60_000

# Backoff between attempts: min(BASE * 2**attempt, MAX)
RETRY_BASE_DELAY_MS = 1_000
RETRY_MAX_DELAY_MS = 10_000

# Generic retry helper (ErrorRecoveryManager.retry_with_backoff)
RECOVERY_RETRY_MAX_DELAY_MS = 30_000
RECOVERY_HISTORY_LIMIT = 100
RECOVERY_RECENT_ATTEMPTS = 10

# ============================================================================
# HTTP
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
HEADER_RETRY_AFTER = "Retry-After"

RATE_LIMIT_EXEMPT_PREFIXES = ("/health", "/metrics")

# ============================================================================
# Rate limit policy names
# ============================================================================

LIMIT_COMMAND = "command"
LIMIT_API = "api"
LIMIT_STRICT = "strict"

# ============================================================================
# Health check
# ============================================================================

HEALTH_PROBE_FILENAME = ".health-check-test"
HEALTH_DISK_DEGRADED_PCT = 90.0
HEALTH_DISK_UNHEALTHY_PCT = 95.0
RECOVERY_DIRECTORIES = ("logs", "temp", "cache")

# ============================================================================
# Upstream APIs
# ============================================================================

WARFRAME_API_NAME = "warframe"

# Chat application invite (administrator permissions, bot + slash commands)
INVITE_URL_TEMPLATE = (
    "https://discord.com/api/oauth2/authorize?client_id={client_id}"
    "&permissions=8&scope=bot%20applications.commands"
)


class ResponseSource(str, Enum):
    """Where an ApiManager response came from."""

    NETWORK = "network"
    CACHE = "cache"
    STALE_CACHE = "stale_cache"


class CircuitState(str, Enum):
    """
    Circuit breaker states.

    CLOSED: Normal operation, requests allowed
    OPEN: Failing fast, endpoint skipped until the reset window passes
    """

    CLOSED = "closed"
    OPEN = "open"
