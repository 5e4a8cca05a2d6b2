"""
Rate Limit Middleware

Applies the `api` policy to every HTTP request, keyed by client IP.

Health probes and the metrics scrape are exempt so orchestrators and
Prometheus are never throttled. Rejected requests get:

    429 {"error": "Too Many Requests", "message": "...", "retryAfter": <seconds>}

plus a Retry-After header.
"""

from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from statusbot.core.config.constants import HEADER_RETRY_AFTER, LIMIT_API, RATE_LIMIT_EXEMPT_PREFIXES
from statusbot.core.logging.logger import get_logger
from statusbot.monitoring import metrics
from statusbot.rate_limiting.rate_limiter import RateLimiter

logger = get_logger(__name__)


def get_client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests over the per-IP limit before they reach a route."""

    def __init__(self, app, limiter: RateLimiter, limit_key: str = LIMIT_API):
        super().__init__(app)
        self.limiter = limiter
        self.limit_key = limit_key

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path.startswith(RATE_LIMIT_EXEMPT_PREFIXES):
            return await call_next(request)

        client_ip = get_client_ip(request)
        result = self.limiter.check_limit(client_ip, self.limit_key)

        if result.allowed:
            return await call_next(request)

        retry_after = result.retry_after_s(self.limiter.clock())
        metrics.record_rate_limit_exceeded(self.limit_key)
        logger.warning(
            "Rate limit exceeded",
            stage="RL.4",
            client_ip=client_ip,
            path=request.url.path,
            retry_after=retry_after,
        )

        return JSONResponse(
            status_code=429,
            content={
                "error": "Too Many Requests",
                "message": f"Rate limit exceeded. Try again in {retry_after} seconds.",
                "retryAfter": retry_after,
            },
            headers={HEADER_RETRY_AFTER: str(retry_after)},
        )
