"""
Unit Tests for the tenacity retry builder
"""

import pytest
from tenacity import retry_if_exception_type

from statusbot.core.resilience.retry import backoff_delay_ms, create_async_retrying
from tests.test_fixtures import RecordingSleep


@pytest.mark.unit
class TestBackoffFormula:
    @pytest.mark.parametrize(
        "attempt,expected",
        [(0, 1_000), (1, 2_000), (2, 4_000), (3, 8_000), (4, 10_000), (10, 10_000)],
    )
    def test_default_schedule(self, attempt, expected):
        assert backoff_delay_ms(attempt) == expected

    def test_custom_cap_and_multiplier(self):
        assert backoff_delay_ms(2, base_delay_ms=100, max_delay_ms=30_000, multiplier=3) == 900


@pytest.mark.unit
class TestAsyncRetrying:
    @pytest.mark.asyncio
    async def test_attempt_count_and_delays(self):
        sleep = RecordingSleep()
        calls = []

        async def always_fails():
            calls.append(1)
            raise RuntimeError("boom")

        retrying = create_async_retrying(5, operation="unit", sleep=sleep)
        with pytest.raises(RuntimeError, match="boom"):
            await retrying(always_fails)

        assert len(calls) == 6
        assert sleep.delays == [1.0, 2.0, 4.0, 8.0, 10.0]

    @pytest.mark.asyncio
    async def test_success_after_failures(self):
        sleep = RecordingSleep()
        outcomes = iter([RuntimeError("1"), RuntimeError("2"), "done"])

        async def flaky():
            outcome = next(outcomes)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        retrying = create_async_retrying(3, operation="unit", sleep=sleep)

        assert await retrying(flaky) == "done"
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_non_matching_exception_not_retried(self):
        sleep = RecordingSleep()
        calls = []

        async def wrong_type():
            calls.append(1)
            raise KeyError("k")

        retrying = create_async_retrying(
            3, operation="unit", retry=retry_if_exception_type(ValueError), sleep=sleep
        )
        with pytest.raises(KeyError):
            await retrying(wrong_type)

        assert len(calls) == 1
        assert sleep.delays == []
