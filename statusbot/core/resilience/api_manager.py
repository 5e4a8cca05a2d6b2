"""
API Manager: multi-endpoint upstream client.

MECHANISM OF ACTION:
-------------------
1.  **Registry**: each named API owns an ordered list of endpoints. The
    primary base URL is priority 1, fallback URLs follow at 2..N in input
    order. Every endpoint gets exactly one circuit breaker, created at
    registration; re-registering an API replaces its config wholesale and
    starts every breaker closed.

2.  **request(api_name, path, options, cache_ttl_ms)**:
    a.  Fresh cache hit ("{api}:{path}", cache_ttl_ms > 0) -> return, no I/O.
    b.  Walk endpoints by ascending priority. Skip endpoints whose breaker is
        open and still cooling down; lazily close breakers whose window passed.
    c.  Fetch through RetryingFetcher with the endpoint's timeout/retry
        overrides (falling back to the API defaults).
    d.  Success: reset the breaker, cache the payload when cache_ttl_ms > 0,
        return. Failure: count it against the breaker and move on.
    e.  Everything failed: return any cached payload, however old. Otherwise
        raise UpstreamUnavailableError carrying the last endpoint error.

There is no request coalescing: concurrent misses for the same key each go
to the network. Breaker and cache state is only touched between awaits. A
request keeps the endpoints and breakers it started with; re-registering the
API mid-flight only affects later requests. Duplicate URLs are rejected by
ApiConfig so every endpoint owns exactly one breaker.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, model_validator

from statusbot.core.config.constants import (
    DEFAULT_BREAKER_RESET_MS,
    DEFAULT_BREAKER_THRESHOLD,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT_MS,
    ResponseSource,
)
from statusbot.core.exceptions import ConfigurationError, UpstreamUnavailableError
from statusbot.core.logging.logger import get_logger
from statusbot.core.resilience.circuit_breaker import EndpointCircuitBreaker
from statusbot.core.resilience.fetcher import RequestOptions, RetryingFetcher
from statusbot.core.resilience.response_cache import ResponseCache, make_cache_key
from statusbot.monitoring import metrics

logger = get_logger(__name__)


def _now_ms() -> float:
    return time.time() * 1000


# ============================================================================
# Models
# ============================================================================


class ApiConfig(BaseModel):
    """Registration input for ApiManager.register_api()."""

    base_url: str = Field(min_length=1, description="Primary endpoint (priority 1)")
    fallback_urls: list[str] = Field(default_factory=list, description="Tried in order after the primary")
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    breaker_threshold: int = Field(default=DEFAULT_BREAKER_THRESHOLD, ge=1)
    breaker_reset_ms: int = Field(default=DEFAULT_BREAKER_RESET_MS, ge=0)

    @model_validator(mode="after")
    def _reject_duplicate_urls(self) -> "ApiConfig":
        seen: set[str] = set()
        for url in [self.base_url, *self.fallback_urls]:
            if url in seen:
                raise ValueError(f"Duplicate endpoint URL: {url}")
            seen.add(url)
        return self


@dataclass(frozen=True)
class EndpointConfig:
    url: str
    priority: int
    timeout_ms: int | None = None
    max_retries: int | None = None


@dataclass(frozen=True)
class InternalApiConfig:
    name: str
    endpoints: tuple[EndpointConfig, ...]
    default_timeout_ms: int
    default_max_retries: int
    breaker_threshold: int
    breaker_reset_ms: int

    def timeout_for(self, endpoint: EndpointConfig) -> int:
        return endpoint.timeout_ms if endpoint.timeout_ms is not None else self.default_timeout_ms

    def retries_for(self, endpoint: EndpointConfig) -> int:
        return endpoint.max_retries if endpoint.max_retries is not None else self.default_max_retries


@dataclass
class ApiResponse:
    """Payload plus where it came from."""

    payload: Any
    source: ResponseSource

    @property
    def is_stale(self) -> bool:
        return self.source == ResponseSource.STALE_CACHE


# ============================================================================
# Manager
# ============================================================================


class ApiManager:
    """
    Composes endpoint registry, circuit breakers, response cache and fetcher.

    Usage:
        manager = ApiManager(RetryingFetcher())
        manager.register_api("warframe", ApiConfig(base_url="https://api.warframestat.us/pc"))
        alerts = await manager.request("warframe", "/alerts", cache_ttl_ms=60_000)
    """

    def __init__(
        self,
        fetcher: RetryingFetcher,
        cache: ResponseCache | None = None,
        clock: Callable[[], float] = _now_ms,
    ):
        self._fetcher = fetcher
        self._cache = cache or ResponseCache()
        self._clock = clock
        self._configs: dict[str, InternalApiConfig] = {}
        self._breakers: dict[tuple[str, str], EndpointCircuitBreaker] = {}

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def registered_apis(self) -> list[str]:
        return list(self._configs)

    def register_api(self, name: str, config: ApiConfig) -> None:
        """
        Register (or replace) a named API.

        Raises:
            ConfigurationError: name is empty
        """
        if not name or not name.strip():
            raise ConfigurationError("API name must not be empty")

        urls = [config.base_url, *config.fallback_urls]
        endpoints = tuple(
            EndpointConfig(
                url=url,
                priority=index + 1,
                timeout_ms=config.timeout_ms,
                max_retries=config.max_retries,
            )
            for index, url in enumerate(urls)
        )

        internal = InternalApiConfig(
            name=name,
            endpoints=endpoints,
            default_timeout_ms=config.timeout_ms,
            default_max_retries=config.max_retries,
            breaker_threshold=config.breaker_threshold,
            breaker_reset_ms=config.breaker_reset_ms,
        )

        for key in [key for key in self._breakers if key[0] == name]:
            del self._breakers[key]
        for endpoint in endpoints:
            self._breakers[(name, endpoint.url)] = EndpointCircuitBreaker(
                f"{name}:{endpoint.url}",
                threshold=internal.breaker_threshold,
                reset_ms=internal.breaker_reset_ms,
            )

        self._configs[name] = internal
        logger.info(
            "API registered",
            stage="API.0",
            api=name,
            endpoints=[endpoint.url for endpoint in endpoints],
        )

    def get_breaker(self, api_name: str, url: str) -> EndpointCircuitBreaker:
        return self._breakers[(api_name, url)]

    async def request(
        self,
        api_name: str,
        path: str = "",
        options: RequestOptions | None = None,
        cache_ttl_ms: int = 0,
    ) -> Any:
        """
        Fetch parsed JSON for api_name + path.

        Raises:
            ConfigurationError: api_name was never registered
            UpstreamUnavailableError: every endpoint failed and nothing is cached
        """
        response = await self.request_with_provenance(api_name, path, options, cache_ttl_ms)
        return response.payload

    async def request_with_provenance(
        self,
        api_name: str,
        path: str = "",
        options: RequestOptions | None = None,
        cache_ttl_ms: int = 0,
    ) -> ApiResponse:
        """Same as request(), but reports whether the payload is live, cached or stale."""
        config = self._configs.get(api_name)
        if config is None:
            raise ConfigurationError(
                f"API configuration not found: {api_name}",
                details={"api": api_name, "registered": self.registered_apis},
            )

        cache_key = make_cache_key(api_name, path)

        if cache_ttl_ms > 0:
            cached = self._cache.get_fresh(cache_key, self._clock())
            if cached is not None:
                logger.debug("Cache hit", stage="API.1", api=api_name, path=path)
                metrics.record_upstream_request(api_name, ResponseSource.CACHE.value)
                return ApiResponse(cached.payload, ResponseSource.CACHE)

        # Pinned before the first await; a concurrent re-registration must not
        # change the endpoint/breaker pairs this request walks.
        route = [(endpoint, self._breakers[(api_name, endpoint.url)]) for endpoint in config.endpoints]
        last_error: Exception | None = None

        for endpoint, breaker in route:
            if not breaker.allow_request(self._clock()):
                logger.warning(
                    f"Circuit breaker open for {endpoint.url}, skipping",
                    stage="API.2",
                    api=api_name,
                )
                continue

            try:
                result = await self._fetcher.fetch(
                    f"{endpoint.url}{path}",
                    options,
                    timeout_ms=config.timeout_for(endpoint),
                    max_retries=config.retries_for(endpoint),
                )
            except Exception as e:
                last_error = e
                opened = breaker.record_failure(self._clock())
                metrics.record_endpoint_failure(api_name, opened)
                logger.warning(
                    f"API request failed for {endpoint.url}: {e}",
                    stage="API.3",
                    api=api_name,
                    priority=endpoint.priority,
                )
                continue

            breaker.record_success()
            if cache_ttl_ms > 0:
                self._cache.set(cache_key, result, self._clock(), cache_ttl_ms)
            metrics.record_upstream_request(api_name, ResponseSource.NETWORK.value)
            return ApiResponse(result, ResponseSource.NETWORK)

        stale = self._cache.get_any(cache_key)
        if stale is not None:
            logger.warning(
                f"All endpoints failed for {api_name}, returning cached data",
                stage="API.4",
                path=path,
                age_ms=self._clock() - stale.stored_at_ms,
            )
            metrics.record_upstream_request(api_name, ResponseSource.STALE_CACHE.value)
            return ApiResponse(stale.payload, ResponseSource.STALE_CACHE)

        metrics.record_upstream_request(api_name, "failed")
        error = UpstreamUnavailableError(
            f"All endpoints failed for API: {api_name}",
            details={"api": api_name, "path": path},
            last_error=last_error,
        )
        if last_error is not None:
            raise error from last_error
        raise error

    def get_health_status(self) -> dict[str, Any]:
        """Breaker state of every endpoint, grouped by API."""
        status: dict[str, Any] = {}
        for api_name, config in self._configs.items():
            endpoints = []
            for endpoint in config.endpoints:
                state = self._breakers[(api_name, endpoint.url)].state
                endpoints.append({
                    "url": endpoint.url,
                    "priority": endpoint.priority,
                    "failures": state.consecutive_failures,
                    "is_open": state.is_open,
                    "last_failure_at_ms": state.last_failure_at_ms,
                })
            status[api_name] = {"endpoints": endpoints}
        return status

    def clear_cache(self, api_name: str | None = None) -> None:
        removed = self._cache.clear(api_name)
        logger.info("Response cache cleared", stage="API.5", api=api_name, removed=removed)

    def get_cache_stats(self) -> dict[str, Any]:
        return self._cache.stats()
