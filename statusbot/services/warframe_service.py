"""
Warframe Status Service

Read-only access to the world-state API through ApiManager. Every call
goes through the shared response cache (STATUS_CACHE_TTL_MS), so menu
navigation within a minute never hits the network twice for the same data,
and a failing upstream falls back to the last good payload.

Formatting for chat embeds is the chat layer's job; this service returns
the decoded JSON as-is.
"""

import asyncio
from typing import Any

from statusbot.core.exceptions import ConfigurationError, StatusBotError
from statusbot.core.logging.logger import get_logger
from statusbot.core.resilience.api_manager import ApiManager
from statusbot.core.resilience.fetcher import RequestOptions

logger = get_logger(__name__)

CATEGORY_PATHS: dict[str, str] = {
    "fissures": "/fissures",
    "nightwave": "/nightwave",
    "invasions": "/invasions",
    "archonhunt": "/archonHunt",
    "sortie": "/sortie",
}

CYCLE_PATHS: dict[str, str] = {
    "cetus": "/cetusCycle",
    "vallis": "/vallisCycle",
    "cambion": "/cambionCycle",
    "earth": "/earthCycle",
    "zariman": "/zarimanCycle",
    "duviri": "/duviriCycle",
}


class WarframeStatusService:
    """
    Usage:
        service = WarframeStatusService(api_manager)
        fissures = await service.get_category("fissures")
        cycles = await service.get_cycles()   # {"cetus": {...} | None, ...}
    """

    def __init__(
        self,
        api_manager: ApiManager,
        api_name: str = "warframe",
        language: str = "en",
        cache_ttl_ms: int = 60_000,
    ):
        self._api_manager = api_manager
        self._api_name = api_name
        self._options = RequestOptions(params={"language": language})
        self._cache_ttl_ms = cache_ttl_ms

    async def _get(self, path: str) -> Any:
        return await self._api_manager.request(
            self._api_name, path, self._options, cache_ttl_ms=self._cache_ttl_ms
        )

    async def get_world_state(self) -> dict[str, Any]:
        return await self._get("")

    async def get_alerts(self) -> list[dict[str, Any]]:
        return await self._get("/alerts")

    async def get_events(self) -> list[dict[str, Any]]:
        return await self._get("/events")

    async def get_category(self, category: str) -> Any:
        """
        Fetch one menu category.

        Raises:
            ConfigurationError: unknown category
            UpstreamUnavailableError: upstream down and nothing cached
        """
        path = CATEGORY_PATHS.get(category.lower())
        if path is None:
            raise ConfigurationError(
                f"Unknown status category: {category}",
                details={"category": category, "available": sorted(CATEGORY_PATHS)},
            )
        return await self._get(path)

    async def get_cycles(self) -> dict[str, Any | None]:
        """All open-world cycles, fetched concurrently; a failed cycle is None."""
        names = list(CYCLE_PATHS)
        results = await asyncio.gather(
            *(self._get(CYCLE_PATHS[name]) for name in names),
            return_exceptions=True,
        )

        cycles: dict[str, Any | None] = {}
        for name, result in zip(names, results):
            if isinstance(result, StatusBotError):
                logger.warning(f"Cycle '{name}' unavailable: {result}", stage="WF.1")
                cycles[name] = None
            elif isinstance(result, BaseException):
                raise result
            else:
                cycles[name] = result
        return cycles

    async def get_overview(self) -> dict[str, Any]:
        """
        World state, alerts and events for the main menu.

        Each part degrades independently to an empty value.
        """
        world_state, alerts, events = await asyncio.gather(
            self.get_world_state(),
            self.get_alerts(),
            self.get_events(),
            return_exceptions=True,
        )

        def or_empty(name: str, value: Any, empty: Any) -> Any:
            if isinstance(value, StatusBotError):
                logger.warning(f"Overview part '{name}' unavailable: {value}", stage="WF.2")
                return empty
            if isinstance(value, BaseException):
                raise value
            return value

        return {
            "world_state": or_empty("world_state", world_state, {}),
            "alerts": or_empty("alerts", alerts, []),
            "events": or_empty("events", events, []),
        }
