"""
Resilience Module

Multi-endpoint upstream access and failure handling.

Components:
-----------
- **circuit_breaker.py**: per-endpoint breaker with lazy reset
- **response_cache.py**: last-good response cache with stale fallback
- **retry.py**: tenacity-based exponential backoff builder
- **fetcher.py**: single-endpoint HTTP fetch with retries (httpx)
- **api_manager.py**: endpoint registry and request orchestration
- **error_recovery.py**: recovery actions and generic retry helper
"""

from statusbot.core.resilience.api_manager import (
    ApiConfig,
    ApiManager,
    ApiResponse,
    EndpointConfig,
    InternalApiConfig,
)
from statusbot.core.resilience.circuit_breaker import CircuitBreakerState, EndpointCircuitBreaker
from statusbot.core.resilience.error_recovery import (
    ErrorRecoveryManager,
    RecoveryAction,
    RetryConfig,
)
from statusbot.core.resilience.fetcher import RequestOptions, RetryingFetcher
from statusbot.core.resilience.response_cache import CacheEntry, ResponseCache

__all__ = [
    "ApiConfig",
    "ApiManager",
    "ApiResponse",
    "EndpointConfig",
    "InternalApiConfig",
    "CircuitBreakerState",
    "EndpointCircuitBreaker",
    "ErrorRecoveryManager",
    "RecoveryAction",
    "RetryConfig",
    "RequestOptions",
    "RetryingFetcher",
    "CacheEntry",
    "ResponseCache",
]
