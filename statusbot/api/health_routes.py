"""
Health Check Routes

- GET /health           full SystemHealth (re-checked when older than 5 minutes)
- GET /health/live      process is up
- GET /health/ready     503 until the chat gateway is connected
- GET /health/apis      circuit breaker state per endpoint + cache stats
- GET /health/recovery  recovery action statistics

These paths are exempt from rate limiting.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from statusbot.api.dependencies import (
    ApiManagerDep,
    ErrorRecoveryDep,
    HealthCheckerDep,
    SettingsDep,
)
from statusbot.monitoring.health_checker import SystemHealth

router = APIRouter(prefix="/health", tags=["Health"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("", response_model=SystemHealth)
async def health_check(checker: HealthCheckerDep):
    return await checker.get_current_health()


@router.get("/live")
async def liveness_check(settings: SettingsDep):
    return {
        "status": "alive",
        "timestamp": _timestamp(),
        "version": settings.app.APP_VERSION,
    }


@router.get("/ready")
async def readiness_check(checker: HealthCheckerDep, settings: SettingsDep):
    ready, reason = checker.is_ready()
    if ready:
        return {"status": "ready", "timestamp": _timestamp(), "version": settings.app.APP_VERSION}

    return JSONResponse(
        status_code=503,
        content={
            "status": "not_ready",
            "timestamp": _timestamp(),
            "version": settings.app.APP_VERSION,
            "reason": reason,
        },
    )


@router.get("/apis")
async def api_health(api_manager: ApiManagerDep):
    return {
        "apis": api_manager.get_health_status(),
        "cache": api_manager.get_cache_stats(),
    }


@router.get("/recovery")
async def recovery_stats(recovery: ErrorRecoveryDep):
    return recovery.get_recovery_stats()
