"""HTTP interface for Geodesk.

FastAPI application factory, bearer-token authentication, request logging
middleware, structured error handlers, and the route modules for projects,
quotes and project communications.
"""

from __future__ import annotations

from geodesk.web.app import create_app
from geodesk.web.auth import IdentityClient, get_actor
from geodesk.web.dependencies import ServiceContainer, build_services
from geodesk.web.middleware import RequestLoggingMiddleware

__all__ = [
    "IdentityClient",
    "RequestLoggingMiddleware",
    "ServiceContainer",
    "build_services",
    "create_app",
    "get_actor",
]
