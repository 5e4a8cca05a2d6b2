"""
Exponential backoff retry built on tenacity.

One builder serves both the upstream fetcher and the generic
ErrorRecoveryManager.retry_with_backoff helper, so the backoff formula
lives in one place:

    delay(attempt) = min(base_delay * multiplier ** attempt, max_delay)

where attempt is 0 for the wait after the first failure. No jitter is added.
The sleep function is injectable so tests can record delays instead of
waiting for them.
"""

import asyncio
from collections.abc import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.retry import retry_base

from statusbot.core.config.constants import RETRY_BASE_DELAY_MS, RETRY_MAX_DELAY_MS
from statusbot.core.logging.logger import get_logger

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


def backoff_delay_ms(
    attempt: int,
    base_delay_ms: float = RETRY_BASE_DELAY_MS,
    max_delay_ms: float = RETRY_MAX_DELAY_MS,
    multiplier: float = 2,
) -> float:
    """Delay after the given zero-based failed attempt."""
    return min(base_delay_ms * multiplier ** attempt, max_delay_ms)


def _log_before_sleep(operation: str) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay_s = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"Attempt {retry_state.attempt_number} failed for {operation}, "
            f"retrying in {delay_s * 1000:.0f}ms",
            stage="R.1",
            error=str(exc) if exc else None,
        )

    return before_sleep


def create_async_retrying(
    max_retries: int,
    operation: str,
    base_delay_ms: float = RETRY_BASE_DELAY_MS,
    max_delay_ms: float = RETRY_MAX_DELAY_MS,
    multiplier: float = 2,
    retry: retry_base | None = None,
    sleep: SleepFunc | None = None,
) -> AsyncRetrying:
    """
    Build an AsyncRetrying that performs max_retries + 1 attempts in total.

    Args:
        max_retries: Retries after the initial attempt
        operation: Label used in retry log lines
        base_delay_ms: Delay after the first failure
        max_delay_ms: Upper bound for any single delay
        multiplier: Exponential base
        retry: tenacity retry predicate (defaults to any Exception)
        sleep: Awaitable sleep(seconds), asyncio.sleep by default

    The last exception is re-raised as-is once attempts are exhausted.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(
            multiplier=base_delay_ms / 1000,
            exp_base=multiplier,
            max=max_delay_ms / 1000,
        ),
        retry=retry or retry_if_exception_type(Exception),
        before_sleep=_log_before_sleep(operation),
        sleep=sleep or asyncio.sleep,
        reraise=True,
    )
