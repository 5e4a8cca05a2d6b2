#!/usr/bin/env python3
"""
Health Checker Module

Periodic health checks for the bot process:
- Gateway connectivity (readiness + heartbeat latency)
- File system write/read/delete round trip
- External APIs (circuit breaker state per endpoint)
- Process memory usage
- Disk space

Overall status is the worst of all checks: any unhealthy -> unhealthy,
else any degraded -> degraded, else healthy.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

import aiofiles
import aiofiles.os
import psutil
from pydantic import BaseModel, Field

from statusbot.core.config.constants import (
    HEALTH_DISK_DEGRADED_PCT,
    HEALTH_DISK_UNHEALTHY_PCT,
    HEALTH_PROBE_FILENAME,
)
from statusbot.core.config.settings import get_settings
from statusbot.core.interfaces import ConnectivityProbe
from statusbot.core.logging.logger import get_logger
from statusbot.monitoring import metrics

logger = get_logger(__name__)

_PROCESS_STARTED_AT = time.time()


class HealthStatus(str, Enum):
    """Health status enumeration."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthCheckResult(BaseModel):
    name: str
    status: HealthStatus
    response_time_ms: float | None = None
    error: str | None = None
    details: dict[str, Any] | None = None


class SystemHealth(BaseModel):
    overall: HealthStatus
    timestamp: float = Field(description="Epoch seconds when the check finished")
    checks: list[HealthCheckResult]
    uptime_s: float


class ApiHealthSource(Protocol):
    def get_health_status(self) -> dict[str, Any]: ...


def worst_status(statuses: list[HealthStatus]) -> HealthStatus:
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


def _mb(value: float) -> float:
    return round(value / 1024 / 1024, 2)


class HealthChecker:
    """
    Aggregates component checks into a SystemHealth snapshot.

    STAGE-H: Health check orchestration

    Usage:
        checker = HealthChecker(api_manager=api_manager, connectivity_probe=probe)
        checker.start()                       # delayed first check + interval loop
        health = await checker.get_current_health()
        checker.stop()
    """

    def __init__(
        self,
        api_manager: ApiHealthSource | None = None,
        connectivity_probe: ConnectivityProbe | None = None,
        settings=None,
        base_dir: Path | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or get_settings()
        self._api_manager = api_manager
        self._probe = connectivity_probe
        self._base_dir = base_dir or self.settings.storage.RECOVERY_BASE_DIR
        self._clock = clock

        self._last_check: SystemHealth | None = None
        self._initial_task: asyncio.Task | None = None
        self._periodic_task: asyncio.Task | None = None

        logger.info("Health checker initialized", stage="H.0")

    def set_connectivity_probe(self, probe: ConnectivityProbe | None) -> None:
        self._probe = probe

    # ========================================================================
    # Aggregation
    # ========================================================================

    async def perform_health_check(self) -> SystemHealth:
        """
        Run every check and store the result.

        STAGE-H.1: Full health check
        """
        checks = [
            await self._timed("connectivity", self.check_connectivity),
            await self._timed("file_system", self.check_file_system),
            await self._timed("external_apis", self.check_external_apis),
            await self._timed("memory_usage", self.check_memory_usage),
            await self._timed("disk_space", self.check_disk_space),
        ]

        overall = worst_status([check.status for check in checks])
        result = SystemHealth(
            overall=overall,
            timestamp=self._clock(),
            checks=checks,
            uptime_s=round(time.time() - _PROCESS_STARTED_AT, 3),
        )
        self._last_check = result
        metrics.record_health_status(overall.value)

        if overall != HealthStatus.HEALTHY:
            logger.warning(
                f"System health: {overall.value}",
                stage="H.1",
                checks=[
                    check.model_dump(mode="json")
                    for check in checks
                    if check.status != HealthStatus.HEALTHY
                ],
            )

        return result

    def get_last_health_check(self) -> SystemHealth | None:
        return self._last_check

    async def get_current_health(self, max_age_s: float = 300) -> SystemHealth:
        """Return the last result, running a new check when missing or older than max_age_s."""
        if self._last_check is None or self._clock() - self._last_check.timestamp > max_age_s:
            return await self.perform_health_check()
        return self._last_check

    def is_ready(self) -> tuple[bool, str | None]:
        """Readiness for the status server: the gateway must be connected when one is attached."""
        if self._probe is not None and not self._probe.is_ready():
            return False, "Gateway not ready"
        return True, None

    async def _timed(
        self, name: str, check: Callable[[], Awaitable[HealthCheckResult]]
    ) -> HealthCheckResult:
        started = time.perf_counter()
        try:
            result = await check()
        except Exception as e:
            result = HealthCheckResult(name=name, status=HealthStatus.UNHEALTHY, error=str(e))
        result.response_time_ms = round((time.perf_counter() - started) * 1000, 3)
        return result

    # ========================================================================
    # Individual checks
    # ========================================================================

    async def check_connectivity(self) -> HealthCheckResult:
        if self._probe is None or not self._probe.is_ready():
            return HealthCheckResult(
                name="connectivity",
                status=HealthStatus.UNHEALTHY,
                error="Gateway not ready",
            )

        ping = self._probe.latency_ms()
        if ping < 0:
            status = HealthStatus.UNHEALTHY
        elif ping > self.settings.health.HEALTH_PING_DEGRADED_MS:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.HEALTHY

        return HealthCheckResult(name="connectivity", status=status, details={"ping_ms": ping})

    async def check_file_system(self) -> HealthCheckResult:
        probe_file = Path(self._base_dir) / HEALTH_PROBE_FILENAME
        payload = f"health-check-{int(self._clock() * 1000)}"

        async with aiofiles.open(probe_file, "w") as f:
            await f.write(payload)
        try:
            async with aiofiles.open(probe_file, "r") as f:
                read_back = await f.read()
        finally:
            await aiofiles.os.remove(probe_file)

        if read_back != payload:
            return HealthCheckResult(
                name="file_system",
                status=HealthStatus.UNHEALTHY,
                error="File content mismatch",
            )
        return HealthCheckResult(name="file_system", status=HealthStatus.HEALTHY)

    async def check_external_apis(self) -> HealthCheckResult:
        if self._api_manager is None:
            return HealthCheckResult(name="external_apis", status=HealthStatus.HEALTHY, details={})

        api_health = self._api_manager.get_health_status()
        has_open = False
        has_failures = False
        for api_status in api_health.values():
            for endpoint in api_status["endpoints"]:
                if endpoint["is_open"]:
                    has_open = True
                elif endpoint["failures"] > 0:
                    has_failures = True

        if has_open:
            status = HealthStatus.UNHEALTHY
        elif has_failures:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.HEALTHY

        return HealthCheckResult(name="external_apis", status=status, details=api_health)

    async def check_memory_usage(self) -> HealthCheckResult:
        process = psutil.Process()
        usage_percent = process.memory_percent()
        memory_info = process.memory_info()

        health = self.settings.health
        if usage_percent > health.HEALTH_MEMORY_UNHEALTHY_PCT:
            status = HealthStatus.UNHEALTHY
        elif usage_percent > health.HEALTH_MEMORY_DEGRADED_PCT:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.HEALTHY

        return HealthCheckResult(
            name="memory_usage",
            status=status,
            details={
                "usage_percent": round(usage_percent, 2),
                "rss_mb": _mb(memory_info.rss),
                "vms_mb": _mb(memory_info.vms),
            },
        )

    async def check_disk_space(self) -> HealthCheckResult:
        disk = psutil.disk_usage(str(self._base_dir))

        if disk.percent > HEALTH_DISK_UNHEALTHY_PCT:
            status = HealthStatus.UNHEALTHY
        elif disk.percent > HEALTH_DISK_DEGRADED_PCT:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.HEALTHY

        return HealthCheckResult(
            name="disk_space",
            status=status,
            details={"usage_percent": disk.percent, "free_mb": _mb(disk.free)},
        )

    # ========================================================================
    # Scheduling
    # ========================================================================

    def start(self) -> None:
        """Schedule the delayed initial check and the periodic loop."""
        health = self.settings.health
        if self._initial_task is not None:
            self._initial_task.cancel()
        self._initial_task = asyncio.create_task(self._initial_check(health.HEALTH_INITIAL_DELAY_S))
        self.start_periodic_checks(health.HEALTH_CHECK_INTERVAL_S)

    def start_periodic_checks(self, interval_s: float = 300) -> None:
        if self._periodic_task is not None:
            self._periodic_task.cancel()
        self._periodic_task = asyncio.create_task(self._periodic_loop(interval_s))
        logger.info("Periodic health checks started", stage="H.0", interval_s=interval_s)

    def stop(self) -> None:
        for task in (self._initial_task, self._periodic_task):
            if task is not None:
                task.cancel()
        self._initial_task = None
        self._periodic_task = None

    async def _initial_check(self, delay_s: float) -> None:
        await asyncio.sleep(delay_s)
        await self._run_logged("Initial")

    async def _periodic_loop(self, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            await self._run_logged("Periodic")

    async def _run_logged(self, label: str) -> None:
        try:
            await self.perform_health_check()
        except Exception as e:
            logger.error(f"{label} health check failed: {e}", stage="H.2", exc_info=True)
