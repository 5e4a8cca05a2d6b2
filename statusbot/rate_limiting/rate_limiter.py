"""
Rate Limiter

In-process fixed-window counters keyed by (policy name, identifier).

Algorithm (per check_limit call):
1. Unknown policy -> allowed (fail open) with a warning.
2. No window, or the window's reset time has passed -> start a new window
   with count=1, remaining = max_requests - 1.
3. count >= max_requests -> rejected, remaining = 0, reset time unchanged.
4. Otherwise increment; remaining = max_requests - count.

The whole window resets at once when it expires (no sliding log). Expired
windows are dropped by cleanup(), run from a background task.
"""

import asyncio
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import BaseModel, Field

from statusbot.core.config.constants import LIMIT_API, LIMIT_COMMAND, LIMIT_STRICT
from statusbot.core.logging.logger import get_logger

logger = get_logger(__name__)


def _now_ms() -> float:
    return time.time() * 1000


class RateLimitConfig(BaseModel):
    max_requests: int = Field(ge=1, description="Requests allowed per window")
    window_ms: int = Field(gt=0, description="Window length in milliseconds")


@dataclass
class RateLimitWindow:
    count: int
    reset_time_ms: float


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int | None = None
    reset_time_ms: float | None = None

    def retry_after_s(self, now_ms: float) -> int:
        """Whole seconds until the window resets (never negative)."""
        if self.reset_time_ms is None:
            return 0
        return max(0, math.ceil((self.reset_time_ms - now_ms) / 1000))


class RateLimiter:
    """
    Named rate limit policies over in-memory windows.

    Usage:
        limiter = RateLimiter()
        limiter.register_limit("command", RateLimitConfig(max_requests=10, window_ms=60_000))
        result = limiter.check_limit(user_id, "command")
        if not result.allowed:
            ...
    """

    def __init__(self, clock: Callable[[], float] = _now_ms):
        self._clock = clock
        self._configs: dict[str, RateLimitConfig] = {}
        self._windows: dict[str, RateLimitWindow] = {}
        self._cleanup_task: asyncio.Task | None = None

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    def register_limit(self, key: str, config: RateLimitConfig) -> None:
        self._configs[key] = config
        logger.debug(
            f"Rate limit '{key}' registered",
            stage="RL.0",
            max_requests=config.max_requests,
            window_ms=config.window_ms,
        )

    def get_config(self, key: str) -> RateLimitConfig | None:
        return self._configs.get(key)

    def check_limit(self, identifier: str, limit_key: str) -> RateLimitResult:
        config = self._configs.get(limit_key)
        if config is None:
            logger.warning(f"Rate limit config not found for key: {limit_key}", stage="RL.1")
            return RateLimitResult(allowed=True)

        now = self._clock()
        key = f"{limit_key}:{identifier}"
        window = self._windows.get(key)

        if window is None or now >= window.reset_time_ms:
            window = RateLimitWindow(count=1, reset_time_ms=now + config.window_ms)
            self._windows[key] = window
            return RateLimitResult(True, config.max_requests - 1, window.reset_time_ms)

        if window.count >= config.max_requests:
            logger.info(
                "Rate limit exceeded",
                stage="RL.2",
                limit=limit_key,
                identifier=identifier,
            )
            return RateLimitResult(False, 0, window.reset_time_ms)

        window.count += 1
        return RateLimitResult(True, config.max_requests - window.count, window.reset_time_ms)

    def get_usage(self, identifier: str, limit_key: str) -> RateLimitWindow | None:
        return self._windows.get(f"{limit_key}:{identifier}")

    def cleanup(self) -> int:
        """Delete expired windows. Returns how many were removed."""
        now = self._clock()
        expired = [key for key, window in self._windows.items() if now >= window.reset_time_ms]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug("Expired rate limit windows removed", stage="RL.3", removed=len(expired))
        return len(expired)

    def start_cleanup_task(self, interval_s: float = 300) -> asyncio.Task:
        """Run cleanup() every interval_s seconds on the running loop."""
        self.stop_cleanup_task()
        self._cleanup_task = asyncio.create_task(self._cleanup_loop(interval_s))
        return self._cleanup_task

    def stop_cleanup_task(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            self._cleanup_task = None

    async def _cleanup_loop(self, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            self.cleanup()


def register_default_limits(limiter: RateLimiter, settings) -> None:
    """Register the command, api and strict policies from settings."""
    rate = settings.rate_limit
    window = rate.RATE_LIMIT_WINDOW_MS
    limiter.register_limit(LIMIT_COMMAND, RateLimitConfig(max_requests=rate.RATE_LIMIT_COMMAND, window_ms=window))
    limiter.register_limit(LIMIT_API, RateLimitConfig(max_requests=rate.RATE_LIMIT_API, window_ms=window))
    limiter.register_limit(LIMIT_STRICT, RateLimitConfig(max_requests=rate.RATE_LIMIT_STRICT, window_ms=window))
