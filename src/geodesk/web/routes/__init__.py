"""FastAPI route definitions for the Geodesk HTTP API.

This module contains route handlers for health checks, project lifecycle,
quotation, and project communications including the inbound email webhook.
"""

from __future__ import annotations

from geodesk.web.routes.comms import create_comms_router, create_webhooks_router
from geodesk.web.routes.health import (
    HealthResponse,
    ReadinessResponse,
    create_health_router,
)
from geodesk.web.routes.projects import create_projects_router
from geodesk.web.routes.quotes import create_quotes_router

__all__ = [
    # Comms
    "create_comms_router",
    "create_webhooks_router",
    # Health
    "HealthResponse",
    "ReadinessResponse",
    "create_health_router",
    # Projects
    "create_projects_router",
    # Quotes
    "create_quotes_router",
]
