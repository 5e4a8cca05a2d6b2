"""
Unit Tests for the status server routes

Drives the FastAPI app through TestClient with a ServiceContainer built
on test settings and a MockTransport upstream.
"""

import sys

import pytest
from fastapi.testclient import TestClient

from statusbot.app import GENERIC_ERROR_MESSAGE, create_app
from statusbot.bootstrap import build_services
from statusbot.core.exceptions import (
    ConfigurationError,
    RateLimitExceededError,
    UpstreamUnavailableError,
)
from statusbot.core.resilience.error_recovery import RecoveryAction


class FakeProbe:
    def __init__(self, ready=True, ping=87.0):
        self.ready = ready
        self.ping = ping

    def is_ready(self):
        return self.ready

    def latency_ms(self):
        return self.ping


@pytest.fixture
def services(test_settings, upstream):
    return build_services(test_settings, http_client=upstream.client(), connectivity_probe=FakeProbe())


@pytest.fixture
def client(services):
    return TestClient(create_app(services))


@pytest.mark.unit
class TestStatusRoutes:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json() == {
            "name": "Status Bot Test",
            "version": "0.6.1-test",
            "environment": "development",
            "docs": "/docs",
            "health": "/health",
        }

    def test_bot_info_online(self, client, services):
        response = client.get("/api")

        body = response.json()
        assert response.status_code == 200
        assert body["bot"]["status"] == "online"
        assert body["bot"]["id"] == "123456789012345678"
        assert body["stats"] == {"guilds": 0, "commands": 3, "ping": 87.0}
        assert [c["name"] for c in body["commands"]] == [
            "warframe",
            "bot_notification",
            "categorypermissionedit",
        ]
        assert "client_id=123456789012345678" in body["inviteUrl"]

    def test_bot_info_offline(self, test_settings, upstream):
        services = build_services(
            test_settings, http_client=upstream.client(), connectivity_probe=FakeProbe(ready=False)
        )
        body = TestClient(create_app(services)).get("/api").json()

        assert body["bot"]["status"] == "offline"
        assert body["stats"]["ping"] is None

    def test_invite_redirect(self, client):
        response = client.get("/invite", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"].startswith("https://discord.com/api/oauth2/authorize")
        assert "scope=bot%20applications.commands" in response.headers["location"]

    def test_invite_not_configured(self, test_settings, upstream):
        settings = test_settings.model_copy(update={"BOT_CLIENT_ID": None})
        services = build_services(settings, http_client=upstream.client())

        response = TestClient(create_app(services)).get("/invite", follow_redirects=False)

        assert response.status_code == 404

    def test_metrics_exposed(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "statusbot_upstream_requests_total" in response.text

    def test_request_id_round_trip(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

        generated = client.get("/").headers["X-Request-ID"]
        assert len(generated) == 36


@pytest.mark.unit
class TestHealthRoutes:
    def test_live(self, client):
        body = client.get("/health/live").json()

        assert body["status"] == "alive"
        assert body["version"] == "0.6.1-test"
        assert body["timestamp"].endswith("Z")

    def test_ready(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_returns_503(self, client, services):
        services.health_checker.set_connectivity_probe(FakeProbe(ready=False))

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
        assert response.json()["reason"] == "Gateway not ready"

    def test_full_health_report(self, client):
        response = client.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["overall"] in ("healthy", "degraded", "unhealthy")
        assert {c["name"] for c in body["checks"]} == {
            "connectivity",
            "file_system",
            "external_apis",
            "memory_usage",
            "disk_space",
        }

    def test_api_health_lists_endpoints(self, client):
        body = client.get("/health/apis").json()

        endpoints = body["apis"]["warframe"]["endpoints"]
        assert [e["url"] for e in endpoints] == ["https://primary.example", "https://fallback.example"]
        assert body["cache"] == {"size": 0, "entries": []}

    def test_recovery_stats_empty(self, client):
        body = client.get("/health/recovery").json()

        assert body == {
            "total_attempts": 0,
            "successful_attempts": 0,
            "failed_attempts": 0,
            "recent_attempts": [],
        }

    @pytest.mark.asyncio
    async def test_recovery_stats_after_recovery(self, client, services):
        async def noop():
            return None

        services.error_recovery.add_recovery_action(
            RecoveryAction(name="noop", action=noop, condition=lambda e: isinstance(e, KeyError))
        )
        await services.error_recovery.handle_error(KeyError("guild"), context="test")

        body = client.get("/health/recovery").json()

        assert body["total_attempts"] == 1
        assert body["recent_attempts"][0]["action"] == "noop"


@pytest.mark.unit
class TestErrorHandling:
    def _app_raising(self, services, exc):
        app = create_app(services)

        async def boom():
            raise exc

        app.add_api_route("/boom", boom)
        return app

    @pytest.mark.parametrize(
        "exc,status_code",
        [
            (UpstreamUnavailableError("All endpoints failed for API: warframe"), 503),
            (ConfigurationError("API configuration not found: x"), 500),
        ],
    )
    def test_errors_mapped_to_generic_response(self, services, exc, status_code):
        client = TestClient(self._app_raising(services, exc))

        response = client.get("/boom", headers={"X-Request-ID": "req-9"})

        assert response.status_code == status_code
        assert response.json() == {
            "error": type(exc).__name__,
            "message": GENERIC_ERROR_MESSAGE,
            "request_id": "req-9",
        }

    def test_rate_limit_error_carries_retry_after(self, services):
        exc = RateLimitExceededError("slow down", details={"retry_after": 12})
        client = TestClient(self._app_raising(services, exc))

        response = client.get("/boom")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "12"


@pytest.mark.unit
def test_lifespan_installs_and_removes_handlers(services):
    previous_hook = sys.excepthook

    with TestClient(create_app(services)) as client:
        assert client.get("/health/live").status_code == 200
        assert sys.excepthook == services.error_recovery._excepthook
        assert services.rate_limiter._cleanup_task is not None

    assert sys.excepthook is previous_hook
    assert services.rate_limiter._cleanup_task is None
