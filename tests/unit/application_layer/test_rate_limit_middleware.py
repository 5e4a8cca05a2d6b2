"""
Unit Tests for RateLimitMiddleware
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from statusbot.rate_limiting.middleware import RateLimitMiddleware
from statusbot.rate_limiting.rate_limiter import RateLimitConfig, RateLimiter


@pytest.fixture
def limiter(clock):
    limiter = RateLimiter(clock=clock)
    limiter.register_limit("api", RateLimitConfig(max_requests=2, window_ms=30_000))
    return limiter


@pytest.fixture
def client(limiter):
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limiter=limiter)

    @app.get("/api")
    async def api():
        return {"ok": True}

    @app.get("/health/live")
    async def live():
        return {"status": "alive"}

    return TestClient(app)


@pytest.mark.unit
class TestRateLimitMiddleware:
    def test_requests_within_limit_pass(self, client):
        assert client.get("/api").status_code == 200
        assert client.get("/api").status_code == 200

    def test_over_limit_rejected_with_retry_after(self, client, clock):
        client.get("/api")
        client.get("/api")
        clock.advance(10_500)

        response = client.get("/api")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "20"
        assert response.json() == {
            "error": "Too Many Requests",
            "message": "Rate limit exceeded. Try again in 20 seconds.",
            "retryAfter": 20,
        }

    def test_window_expiry_allows_again(self, client, clock):
        for _ in range(3):
            client.get("/api")
        clock.advance(30_000)

        assert client.get("/api").status_code == 200

    def test_health_paths_exempt(self, client, limiter):
        for _ in range(5):
            assert client.get("/health/live").status_code == 200
        assert limiter.get_usage("testclient", "api") is None

    def test_unknown_policy_fails_open(self, clock):
        app = FastAPI()
        app.add_middleware(RateLimitMiddleware, limiter=RateLimiter(clock=clock), limit_key="missing")

        @app.get("/api")
        async def api():
            return {"ok": True}

        client = TestClient(app)
        assert all(client.get("/api").status_code == 200 for _ in range(5))
