"""Project messaging and inbound email endpoints for Geodesk.

The project thread is read and written by authenticated participants.
The inbound webhook carries no bearer token: when a signing secret is
configured the raw body is verified before it is parsed, and every
payload that parses is acknowledged with 200 so the provider does not
retry emails that can never be threaded.
"""

from __future__ import annotations

import json
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi import status as http_status
from fastapi.responses import JSONResponse

from geodesk.inbound.resolver import InboundThreadResolver
from geodesk.lifecycle.authz import Actor
from geodesk.lifecycle.controller import ProjectLifecycleController
from geodesk.lifecycle.schemas import MessagePayload
from geodesk.logging import get_logger
from geodesk.notifications.webhook import WebhookVerificationError, verify_webhook
from geodesk.web.auth import get_actor
from geodesk.web.dependencies import (
    ServiceContainer,
    get_controller,
    get_inbound_resolver,
    get_services,
)
from geodesk.web.schemas import MessageResponse, dump, dump_all

logger = get_logger(__name__)

INBOUND_EMAIL_PATH = "/webhooks/inbound-email"


async def receive_inbound_email(
    request: Request,
    services: ServiceContainer = Depends(get_services),  # noqa: B008
    resolver: InboundThreadResolver = Depends(get_inbound_resolver),  # noqa: B008
) -> JSONResponse:
    """Verify, parse and thread one inbound email webhook."""
    body = await request.body()

    secret = services.config.webhook.secret
    if secret:
        try:
            verify_webhook(
                body,
                request.headers,
                secret,
                tolerance_seconds=services.config.webhook.tolerance_seconds,
            )
        except WebhookVerificationError as e:
            logger.warning("inbound_webhook_rejected", reason=e.reason)
            return JSONResponse(
                status_code=http_status.HTTP_401_UNAUTHORIZED,
                content={"ok": False, "reason": "invalid signature"},
            )
    else:
        logger.warning("inbound_webhook_unverified")

    try:
        payload = json.loads(body or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = None
    if not isinstance(payload, dict):
        return JSONResponse(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            content={"ok": False, "reason": "invalid json"},
        )

    result = await resolver.handle(payload)
    return JSONResponse(status_code=http_status.HTTP_200_OK, content=result.to_dict())


def create_comms_router() -> APIRouter:
    """Create communications router.

    Routes:
        GET  /comms/{id}/messages           - Project thread (owner/staff)
        POST /comms/{id}/messages           - Post to the thread (owner/staff)
        POST /comms/webhooks/inbound-email  - Inbound email webhook
    """
    router = APIRouter(prefix="/comms", tags=["comms"])

    @router.get("/{project_id}/messages")
    async def list_messages(
        project_id: UUID,
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        messages = await controller.list_messages(actor, project_id)
        return {"messages": dump_all(MessageResponse, messages)}

    @router.post("/{project_id}/messages", status_code=http_status.HTTP_201_CREATED)
    async def post_message(
        project_id: UUID,
        payload: MessagePayload,
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        message = await controller.post_message(
            actor, project_id, payload.body, payload.is_internal
        )
        return {"message": dump(MessageResponse, message)}

    router.add_api_route(INBOUND_EMAIL_PATH, receive_inbound_email, methods=["POST"])
    return router


def create_webhooks_router() -> APIRouter:
    """Router exposing the inbound webhook at its legacy top-level path."""
    router = APIRouter(tags=["comms"])
    router.add_api_route(INBOUND_EMAIL_PATH, receive_inbound_email, methods=["POST"])
    return router
