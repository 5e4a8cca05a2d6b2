"""
Rate limiting package.

- **rate_limiter.py**: named fixed-window policies (command, api, strict)
- **middleware.py**: per-IP `api` policy for the status server
"""

from statusbot.rate_limiting.middleware import RateLimitMiddleware
from statusbot.rate_limiting.rate_limiter import (
    RateLimitConfig,
    RateLimiter,
    RateLimitResult,
    RateLimitWindow,
    register_default_limits,
)

__all__ = [
    "RateLimitConfig",
    "RateLimiter",
    "RateLimitResult",
    "RateLimitWindow",
    "RateLimitMiddleware",
    "register_default_limits",
]
