"""Health check endpoints for Geodesk.

- ``GET /health/``: liveness
- ``GET /health/ready``: readiness, verified with a database round trip
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from geodesk.logging import get_logger
from geodesk.web.dependencies import ServiceContainer, get_services

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Readiness check response model.

    Attributes:
        status: "ok" or "unhealthy"
        database: "connected" or "disconnected"
        outbox_pending: Notification jobs waiting for delivery
    """

    status: str
    database: str
    outbox_pending: int


def create_health_router() -> APIRouter:
    """Create health check router.

    Routes:
        GET /health/ - Basic liveness check
        GET /health/ready - Readiness check with database verification
    """
    router = APIRouter(prefix="/health", tags=["health"])

    @router.get("/", response_model=HealthResponse)
    async def health() -> dict[str, Any]:
        return {"status": "ok"}

    @router.get("/ready", response_model=ReadinessResponse)
    async def readiness(
        services: ServiceContainer = Depends(get_services),  # noqa: B008
    ) -> dict[str, Any]:
        """Readiness check with database connectivity verification."""
        try:
            async with services.database.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning("readiness_check_failed", database="disconnected", error=str(exc))
            return {
                "status": "unhealthy",
                "database": "disconnected",
                "outbox_pending": services.outbox.pending,
            }

        logger.debug("readiness_check_passed", database="connected")
        return {
            "status": "ok",
            "database": "connected",
            "outbox_pending": services.outbox.pending,
        }

    return router
