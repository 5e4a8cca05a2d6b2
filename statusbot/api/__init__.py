"""
HTTP surface of the status server.

- **status_routes.py**: /, /api, /invite, /metrics
- **health_routes.py**: /health and its probes
- **dependencies.py**: ServiceContainer accessors for route handlers
"""

from statusbot.api.health_routes import router as health_router
from statusbot.api.status_routes import router as status_router

__all__ = ["health_router", "status_router"]
