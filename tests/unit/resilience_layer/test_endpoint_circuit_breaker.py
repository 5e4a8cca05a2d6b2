"""
Unit Tests for EndpointCircuitBreaker

State transitions (closed -> open -> lazily closed), failure counting
and the reset window boundary.
"""

import pytest

from statusbot.core.config.constants import CircuitState
from statusbot.core.resilience.circuit_breaker import EndpointCircuitBreaker


@pytest.fixture
def breaker():
    return EndpointCircuitBreaker("game:https://primary.example", threshold=3, reset_ms=60_000)


@pytest.mark.unit
class TestBreakerTransitions:
    def test_starts_closed(self, breaker):
        assert breaker.circuit_state == CircuitState.CLOSED
        assert breaker.allow_request(0) is True

    def test_failures_below_threshold_keep_circuit_closed(self, breaker):
        assert breaker.record_failure(1_000) is False
        assert breaker.record_failure(2_000) is False

        assert breaker.state.consecutive_failures == 2
        assert breaker.state.last_failure_at_ms == 2_000
        assert breaker.allow_request(2_001) is True

    def test_threshold_failure_opens_circuit(self, breaker):
        breaker.record_failure(1_000)
        breaker.record_failure(1_000)
        opened = breaker.record_failure(1_000)

        assert opened is True
        assert breaker.circuit_state == CircuitState.OPEN
        assert breaker.allow_request(1_001) is False

    def test_further_failures_do_not_report_opening_again(self, breaker):
        for _ in range(3):
            breaker.record_failure(1_000)

        assert breaker.record_failure(1_500) is False
        assert breaker.state.consecutive_failures == 4

    def test_success_resets_counter(self, breaker):
        breaker.record_failure(1_000)
        breaker.record_failure(1_000)
        breaker.record_success()

        assert breaker.state.consecutive_failures == 0
        assert breaker.record_failure(2_000) is False


@pytest.mark.unit
class TestResetWindow:
    def _open(self, breaker, at_ms=10_000):
        for _ in range(breaker.threshold):
            breaker.record_failure(at_ms)

    def test_still_open_at_exact_window(self, breaker):
        self._open(breaker)
        assert breaker.allow_request(10_000 + 60_000) is False

    def test_closes_after_window(self, breaker):
        self._open(breaker)

        assert breaker.allow_request(10_000 + 60_001) is True
        assert breaker.state.is_open is False
        assert breaker.state.consecutive_failures == 0

    def test_no_half_open_probe_after_reset(self, breaker):
        self._open(breaker)
        breaker.allow_request(100_000)

        # One failure after the lazy reset does not re-open a threshold-3 breaker
        assert breaker.record_failure(100_001) is False
        assert breaker.allow_request(100_002) is True

    def test_threshold_one_opens_immediately(self):
        breaker = EndpointCircuitBreaker("x", threshold=1, reset_ms=0)
        assert breaker.record_failure(5) is True
        assert breaker.allow_request(5) is False
        assert breaker.allow_request(6) is True


@pytest.mark.unit
def test_snapshot_reports_state():
    breaker = EndpointCircuitBreaker("x", threshold=2, reset_ms=1_000)
    breaker.record_failure(42)

    assert breaker.snapshot() == {
        "state": "closed",
        "consecutive_failures": 1,
        "last_failure_at_ms": 42,
        "is_open": False,
    }
