"""
Monitoring package.

- **metrics.py**: prometheus collectors and recording helpers
- **health_checker.py**: component checks and the periodic health loop
"""

from statusbot.monitoring.health_checker import (
    HealthChecker,
    HealthCheckResult,
    HealthStatus,
    SystemHealth,
)

__all__ = [
    "HealthChecker",
    "HealthCheckResult",
    "HealthStatus",
    "SystemHealth",
]
