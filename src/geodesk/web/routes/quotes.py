"""Quotation endpoints for Geodesk.

Routes:
    POST /quotes/{id}         - Generate or regenerate a quote (staff)
    POST /quotes/{id}/accept  - Accept the current quote (owner/staff)
    POST /quotes/{id}/reject  - Decline the current quote (owner/staff)
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends

from geodesk.lifecycle.authz import Actor
from geodesk.lifecycle.schemas import ReasonPayload
from geodesk.quotes.calculator import QuoteRequest
from geodesk.quotes.engine import QuotationEngine
from geodesk.web.auth import get_actor
from geodesk.web.dependencies import get_quote_engine
from geodesk.web.schemas import LineItemResponse, ProjectResponse, dump, dump_all


def create_quotes_router() -> APIRouter:
    """Create quotes router."""
    router = APIRouter(prefix="/quotes", tags=["quotes"])

    @router.post("/{project_id}")
    async def generate_quote(
        project_id: UUID,
        payload: QuoteRequest,
        actor: Actor = Depends(get_actor),  # noqa: B008
        engine: QuotationEngine = Depends(get_quote_engine),  # noqa: B008
    ) -> dict[str, Any]:
        """Price the project and persist the quote with its line items."""
        result = await engine.generate(actor, project_id, payload)
        return {
            "project": dump(ProjectResponse, result.project),
            "line_items": dump_all(LineItemResponse, result.line_items),
        }

    @router.post("/{project_id}/accept")
    async def accept_quote(
        project_id: UUID,
        actor: Actor = Depends(get_actor),  # noqa: B008
        engine: QuotationEngine = Depends(get_quote_engine),  # noqa: B008
    ) -> dict[str, Any]:
        project = await engine.accept(actor, project_id)
        return {"project": dump(ProjectResponse, project)}

    @router.post("/{project_id}/reject")
    async def reject_quote(
        project_id: UUID,
        payload: ReasonPayload | None = None,
        actor: Actor = Depends(get_actor),  # noqa: B008
        engine: QuotationEngine = Depends(get_quote_engine),  # noqa: B008
    ) -> dict[str, Any]:
        reason = payload.reason if payload is not None else None
        project = await engine.reject(actor, project_id, reason)
        return {"project": dump(ProjectResponse, project)}

    return router
