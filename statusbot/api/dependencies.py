"""
FastAPI dependencies.

Route handlers receive services from the ServiceContainer stored on
`app.state.services` by create_app(). Tests build their own container and
pass it to create_app(), so no dependency_overrides are needed.
"""

from typing import Annotated

from fastapi import Depends, Request

from statusbot.bootstrap import ServiceContainer
from statusbot.core.config.settings import Settings
from statusbot.core.resilience.api_manager import ApiManager
from statusbot.core.resilience.error_recovery import ErrorRecoveryManager
from statusbot.monitoring.health_checker import HealthChecker


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_app_settings(services: Annotated[ServiceContainer, Depends(get_services)]) -> Settings:
    return services.settings


def get_api_manager(services: Annotated[ServiceContainer, Depends(get_services)]) -> ApiManager:
    return services.api_manager


def get_health_checker(services: Annotated[ServiceContainer, Depends(get_services)]) -> HealthChecker:
    return services.health_checker


def get_error_recovery(
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> ErrorRecoveryManager:
    return services.error_recovery


# ============================================================================
# TYPE ALIASES FOR CLEANER ROUTE SIGNATURES
# ============================================================================

ServicesDep = Annotated[ServiceContainer, Depends(get_services)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
ApiManagerDep = Annotated[ApiManager, Depends(get_api_manager)]
HealthCheckerDep = Annotated[HealthChecker, Depends(get_health_checker)]
ErrorRecoveryDep = Annotated[ErrorRecoveryManager, Depends(get_error_recovery)]
