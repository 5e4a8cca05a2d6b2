"""
Composition root.

Builds every long-lived service once and hands them out through a
ServiceContainer. Nothing in the package keeps module-level singletons of
these objects, so tests build a fresh container (or pieces of one) each time.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

from statusbot.core.config.constants import WARFRAME_API_NAME
from statusbot.core.config.settings import Settings, get_settings
from statusbot.core.interfaces import ConnectivityProbe
from statusbot.core.logging.logger import get_logger
from statusbot.core.resilience.api_manager import ApiConfig, ApiManager
from statusbot.core.resilience.error_recovery import ErrorRecoveryManager
from statusbot.core.resilience.fetcher import RetryingFetcher
from statusbot.monitoring.health_checker import HealthChecker
from statusbot.rate_limiting.rate_limiter import RateLimiter, register_default_limits
from statusbot.services.warframe_service import WarframeStatusService
from statusbot.storage.notification_store import GuildNotificationStore

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    fetcher: RetryingFetcher
    api_manager: ApiManager
    rate_limiter: RateLimiter
    health_checker: HealthChecker
    error_recovery: ErrorRecoveryManager
    notification_store: GuildNotificationStore
    warframe: WarframeStatusService
    connectivity_probe: ConnectivityProbe | None = None

    async def aclose(self) -> None:
        await self.fetcher.aclose()


def register_warframe_api(api_manager: ApiManager, settings: Settings) -> None:
    upstream = settings.upstream
    api_manager.register_api(
        WARFRAME_API_NAME,
        ApiConfig(
            base_url=upstream.WARFRAME_API_BASE_URL,
            fallback_urls=upstream.WARFRAME_API_FALLBACK_URLS,
            timeout_ms=upstream.UPSTREAM_TIMEOUT_MS,
            max_retries=upstream.UPSTREAM_MAX_RETRIES,
            breaker_threshold=upstream.CB_FAILURE_THRESHOLD,
            breaker_reset_ms=upstream.CB_RESET_MS,
        ),
    )


def build_services(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
    connectivity_probe: ConnectivityProbe | None = None,
    reconnect: Callable[[], Awaitable[None]] | None = None,
) -> ServiceContainer:
    """
    Wire the services together.

    Args:
        settings: Defaults to get_settings()
        http_client: Shared upstream client (tests pass one with httpx.MockTransport)
        connectivity_probe: Gateway readiness, supplied by the chat framework
        reconnect: Gateway reconnect coroutine for the recovery manager
    """
    settings = settings or get_settings()

    fetcher = RetryingFetcher(client=http_client)
    api_manager = ApiManager(fetcher)
    register_warframe_api(api_manager, settings)

    rate_limiter = RateLimiter()
    register_default_limits(rate_limiter, settings)

    health_checker = HealthChecker(
        api_manager=api_manager,
        connectivity_probe=connectivity_probe,
        settings=settings,
    )

    error_recovery = ErrorRecoveryManager()
    error_recovery.setup_default_recovery_actions(
        reconnect=reconnect,
        connectivity_probe=connectivity_probe,
        cache_clearers=[api_manager.clear_cache],
        base_dir=settings.storage.RECOVERY_BASE_DIR,
    )

    warframe = WarframeStatusService(
        api_manager,
        api_name=WARFRAME_API_NAME,
        language=settings.upstream.WARFRAME_API_LANGUAGE,
        cache_ttl_ms=settings.upstream.STATUS_CACHE_TTL_MS,
    )

    logger.info("Services built", stage="BOOT.1", apis=api_manager.registered_apis)

    return ServiceContainer(
        settings=settings,
        fetcher=fetcher,
        api_manager=api_manager,
        rate_limiter=rate_limiter,
        health_checker=health_checker,
        error_recovery=error_recovery,
        notification_store=GuildNotificationStore(settings.storage.NOTIFICATIONS_FILE),
        warframe=warframe,
        connectivity_probe=connectivity_probe,
    )
