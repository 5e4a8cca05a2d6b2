#!/usr/bin/env python3
"""
Prometheus metrics for the status bot.

Architectural Decision: prometheus-client for industry-standard metrics
- Scraped from GET /metrics
- Module-level collectors registered once in the default REGISTRY
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, generate_latest

# ============================================================================
# Metric Definitions
# ============================================================================

UPSTREAM_REQUESTS = Counter(
    "statusbot_upstream_requests_total",
    "Upstream API requests by outcome",
    ["api", "source"]  # network, cache, stale_cache, failed
)

ENDPOINT_FAILURES = Counter(
    "statusbot_endpoint_failures_total",
    "Endpoint attempts that failed after retries",
    ["api"]
)

CIRCUIT_BREAKER_OPENED = Counter(
    "statusbot_circuit_breaker_opened_total",
    "Circuit breakers tripped open",
    ["api"]
)

RATE_LIMIT_EXCEEDED = Counter(
    "statusbot_rate_limit_exceeded_total",
    "Requests rejected by a rate limit policy",
    ["limit"]
)

RECOVERY_ACTIONS = Counter(
    "statusbot_recovery_actions_total",
    "Recovery actions executed",
    ["action", "result"]  # success, failure
)

HEALTH_STATUS = Gauge(
    "statusbot_health_status",
    "Last overall health (0=healthy, 1=degraded, 2=unhealthy)"
)

_HEALTH_LEVELS = {"healthy": 0, "degraded": 1, "unhealthy": 2}


def record_upstream_request(api: str, source: str) -> None:
    UPSTREAM_REQUESTS.labels(api=api, source=source).inc()


def record_endpoint_failure(api: str, opened: bool) -> None:
    ENDPOINT_FAILURES.labels(api=api).inc()
    if opened:
        CIRCUIT_BREAKER_OPENED.labels(api=api).inc()


def record_rate_limit_exceeded(limit: str) -> None:
    RATE_LIMIT_EXCEEDED.labels(limit=limit).inc()


def record_recovery_action(action: str, success: bool) -> None:
    RECOVERY_ACTIONS.labels(action=action, result="success" if success else "failure").inc()


def record_health_status(status: str) -> None:
    HEALTH_STATUS.set(_HEALTH_LEVELS.get(status, 2))


def render_metrics() -> tuple[bytes, str]:
    """Return the exposition payload and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
