"""
Per-endpoint circuit breaker.

STATE TRANSITIONS:
------------------
- **CLOSED**: requests allowed.
  - On failure: consecutive failure counter increments, last failure stamped.
  - On success: counter resets to 0.
  - Threshold reached: counter >= threshold right after a failure -> OPEN.

- **OPEN**: endpoint is skipped without a network call.
  - Recovery is lazy: the breaker is only re-evaluated when consulted. If more
    than `reset_ms` has passed since the last failure, it closes and the
    counter is zeroed before the request proceeds.

There is no half-open probing state. Once the reset window has passed the
endpoint is fully trusted again and failures accumulate from zero.

All timestamps are milliseconds supplied by the caller, so the breaker has
no clock of its own and tests drive it directly.
"""

from dataclasses import asdict, dataclass
from typing import Any

from statusbot.core.config.constants import CircuitState
from statusbot.core.logging.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CircuitBreakerState:
    """Mutable breaker bookkeeping for one (api, endpoint url) pair."""

    consecutive_failures: int = 0
    last_failure_at_ms: float = 0.0
    is_open: bool = False


class EndpointCircuitBreaker:
    """In-process breaker guarding a single endpoint URL."""

    def __init__(self, name: str, threshold: int, reset_ms: int):
        self.name = name
        self.threshold = threshold
        self.reset_ms = reset_ms
        self.state = CircuitBreakerState()

    @property
    def circuit_state(self) -> CircuitState:
        return CircuitState.OPEN if self.state.is_open else CircuitState.CLOSED

    def allow_request(self, now_ms: float) -> bool:
        """
        Decide whether the endpoint may be tried.

        Closes an open breaker whose reset window has elapsed.
        """
        if not self.state.is_open:
            return True

        if now_ms - self.state.last_failure_at_ms > self.reset_ms:
            self.state.is_open = False
            self.state.consecutive_failures = 0
            logger.info(f"Circuit '{self.name}' reset window elapsed, closing", stage="CB.2")
            return True

        return False

    def record_success(self) -> None:
        if self.state.is_open:
            logger.info(f"Circuit '{self.name}' recovered! Resetting to CLOSED.", stage="CB.3")
        self.state.consecutive_failures = 0
        self.state.is_open = False

    def record_failure(self, now_ms: float) -> bool:
        """
        Record a failed attempt (after retries were exhausted).

        Returns:
            True when this failure opened the circuit
        """
        self.state.consecutive_failures += 1
        self.state.last_failure_at_ms = now_ms

        logger.warning(
            f"Circuit '{self.name}' recorded failure "
            f"({self.state.consecutive_failures}/{self.threshold})",
            stage="CB.1",
        )

        if self.state.consecutive_failures >= self.threshold and not self.state.is_open:
            self.state.is_open = True
            logger.error(f"Circuit '{self.name}' tripped! Opening circuit.", stage="CB.1")
            return True

        return False

    def snapshot(self) -> dict[str, Any]:
        return {"state": self.circuit_state.value, **asdict(self.state)}
