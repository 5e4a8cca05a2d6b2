"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys
from unittest.mock import MagicMock

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from statusbot.core.config.settings import Settings  # noqa: E402
from statusbot.core.resilience.api_manager import ApiConfig, ApiManager  # noqa: E402
from statusbot.core.resilience.fetcher import RetryingFetcher  # noqa: E402
from tests.test_fixtures import (  # noqa: E402
    FALLBACK,
    PRIMARY,
    TERTIARY,
    FakeClock,
    RecordingSleep,
    UpstreamStub,
)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_settings(tmp_path):
    """
    Real Settings instance isolated from the environment's .env file.

    Files land in tmp_path; retries are kept small so failure paths stay short.
    """
    return Settings(
        _env_file=None,
        ENVIRONMENT="development",
        APP_NAME="Status Bot Test",
        APP_VERSION="0.6.1-test",
        BOT_CLIENT_ID="123456789012345678",
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="console",
        WARFRAME_API_BASE_URL=PRIMARY,
        WARFRAME_API_FALLBACK_URLS=[FALLBACK],
        UPSTREAM_MAX_RETRIES=0,
        NOTIFICATIONS_FILE=tmp_path / "bot_notifications.json",
        RECOVERY_BASE_DIR=tmp_path,
        HEALTH_INITIAL_DELAY_S=3600,
    )


@pytest.fixture
def mock_settings():
    """MagicMock settings for components that only read a few grouped values."""
    settings = MagicMock(spec=Settings)
    settings.health.HEALTH_PING_DEGRADED_MS = 500
    settings.health.HEALTH_MEMORY_DEGRADED_PCT = 75
    settings.health.HEALTH_MEMORY_UNHEALTHY_PCT = 90
    settings.health.HEALTH_INITIAL_DELAY_S = 10
    settings.health.HEALTH_CHECK_INTERVAL_S = 300
    settings.app.APP_VERSION = "0.6.1-test"
    return settings


# ============================================================================
# Resilience Fixtures
# ============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def upstream():
    return UpstreamStub()


@pytest.fixture
async def fetcher(upstream, recording_sleep):
    client = upstream.client()
    fetcher = RetryingFetcher(client=client, sleep=recording_sleep)
    yield fetcher
    await client.aclose()


@pytest.fixture
def api_manager(fetcher, clock):
    return ApiManager(fetcher, clock=clock)


@pytest.fixture
def register_three_endpoints(api_manager):
    """Register 'game' with a primary and two fallbacks, no retries, threshold 3."""

    def _register(**overrides):
        config = {
            "base_url": PRIMARY,
            "fallback_urls": [FALLBACK, TERTIARY],
            "max_retries": 0,
            "breaker_threshold": 3,
            "breaker_reset_ms": 60_000,
            **overrides,
        }
        api_manager.register_api("game", ApiConfig(**config))
        return api_manager

    return _register
