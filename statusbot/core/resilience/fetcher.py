"""
Retrying fetcher: one endpoint, bounded attempts, exponential backoff.

For attempt 0..max_retries:
  1. Issue the HTTP call with a per-attempt timeout.
  2. Non-2xx responses fail with "HTTP {status}: {reason}".
  3. On success the body is parsed as JSON and returned.
  4. On failure, sleep min(1000 * 2**attempt, 10000) ms and try again,
     or re-raise once the last attempt has failed.

Every failure surfaces as TransportError (or TransportTimeoutError), which is
what the API manager counts against the endpoint's circuit breaker.
"""

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import retry_if_exception_type

from statusbot.core.config.constants import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT_MS
from statusbot.core.exceptions import TransportError, TransportTimeoutError
from statusbot.core.logging.logger import get_logger
from statusbot.core.resilience.retry import SleepFunc, create_async_retrying

logger = get_logger(__name__)


@dataclass
class RequestOptions:
    """HTTP options forwarded to every attempt."""

    method: str = "GET"
    headers: dict[str, str] | None = None
    params: dict[str, Any] | None = None
    json: Any = None
    content: bytes | str | None = None


class RetryingFetcher:
    """
    Performs single-endpoint requests with retries.

    Usage:
        fetcher = RetryingFetcher()
        data = await fetcher.fetch("https://api.example.com/alerts", timeout_ms=5000)
        await fetcher.aclose()
    """

    def __init__(self, client: httpx.AsyncClient | None = None, sleep: SleepFunc | None = None):
        """
        Args:
            client: Shared httpx client; one is created (and owned) when omitted
            sleep: Backoff sleep override, used by tests
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self._sleep = sleep

    async def fetch(
        self,
        url: str,
        options: RequestOptions | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> Any:
        """
        Fetch and decode JSON from url.

        Raises:
            TransportError: when every attempt failed (the last error is raised)
        """
        retrying = create_async_retrying(
            max_retries,
            operation=url,
            retry=retry_if_exception_type(TransportError),
            sleep=self._sleep,
        )
        return await retrying(self._attempt, url, options or RequestOptions(), timeout_ms)

    async def _attempt(self, url: str, options: RequestOptions, timeout_ms: int) -> Any:
        timeout_s = timeout_ms / 1000
        try:
            response = await asyncio.wait_for(
                self._client.request(
                    options.method,
                    url,
                    headers=options.headers,
                    params=options.params,
                    json=options.json,
                    content=options.content,
                    timeout=httpx.Timeout(timeout_s),
                ),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise TransportTimeoutError.from_exception(
                e, message=f"Request timed out after {timeout_ms}ms", url=url
            ) from e
        except httpx.HTTPError as e:
            raise TransportError.from_exception(e, url=url) from e

        if not response.is_success:
            raise TransportError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                url=url,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransportError.from_exception(
                e, message="Response body is not valid JSON", url=url
            ) from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
