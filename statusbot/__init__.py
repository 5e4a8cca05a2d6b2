"""
Status bot backend.

Resilient game-status API client (circuit breakers, retries, stale cache
fallback), rate limiting, health checks, error recovery, guild notification
preferences and the FastAPI status server.
"""

__version__ = "0.6.1"
