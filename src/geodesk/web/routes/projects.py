"""Project lifecycle endpoints for Geodesk.

This module exposes the ProjectLifecycleController over HTTP:
- Submit, list and read projects
- Move a project along the status state machine, or cancel it
- Toggle the featured flag
- Record notes and read the activity feed
- Register media and request attachments, and remove media

Every handler resolves the caller through ``get_actor`` and delegates all
authorization and validation to the controller. Domain errors propagate
to the exception handlers registered on the application.

Example:
    >>> from fastapi import FastAPI
    >>> from geodesk.web.routes.projects import create_projects_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_projects_router())
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi import status as http_status

from geodesk.lifecycle.authz import Actor
from geodesk.lifecycle.controller import ProjectLifecycleController
from geodesk.lifecycle.schemas import (
    AttachmentPayload,
    MediaPayload,
    NotePayload,
    ProjectCreate,
    ProjectPatch,
    ReasonPayload,
    StatusUpdate,
)
from geodesk.logging import get_logger
from geodesk.web.auth import get_actor
from geodesk.web.dependencies import get_controller
from geodesk.web.schemas import (
    ActivityResponse,
    FileResponse,
    LineItemResponse,
    MessageResponse,
    ProjectResponse,
    dump,
    dump_all,
)

logger = get_logger(__name__)


def create_projects_router() -> APIRouter:
    """Create projects router.

    Returns:
        Configured APIRouter with project lifecycle endpoints.

    Routes:
        POST   /projects                        - Submit a request for quote (client)
        GET    /projects                        - List visible projects
        GET    /projects/{id}                   - Project detail (owner/staff)
        PUT    /projects/{id}/status            - Change status (staff)
        POST   /projects/{id}/cancel            - Cancel (owner/staff)
        PATCH  /projects/{id}                   - Featured flag (staff)
        POST   /projects/{id}/notes             - Add a note (owner/staff)
        GET    /projects/{id}/activity          - Activity feed (owner/staff)
        POST   /projects/{id}/media             - Register media (owner/staff)
        DELETE /projects/{id}/media/{media_id}  - Remove media (owner/staff)
        POST   /projects/{id}/attachments       - Register attachments (owner)
    """
    router = APIRouter(prefix="/projects", tags=["projects"])

    @router.post("", status_code=http_status.HTTP_201_CREATED)
    async def create_project(
        payload: ProjectCreate,
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        project = await controller.create(actor, payload)
        logger.info("project_created_via_api", project_id=str(project.id))
        return {"project": dump(ProjectResponse, project)}

    @router.get("")
    async def list_projects(
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        projects = await controller.list_projects(actor)
        return {"projects": dump_all(ProjectResponse, projects)}

    @router.get("/{project_id}")
    async def get_project(
        project_id: UUID,
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        """Project with its line items, activity, messages and files."""
        detail = await controller.get(actor, project_id)
        project = dump(ProjectResponse, detail.project)
        project["attachments"] = dump_all(FileResponse, detail.attachments)
        project["media"] = dump_all(FileResponse, detail.media)
        return {
            "project": project,
            "line_items": dump_all(LineItemResponse, detail.line_items),
            "activity_log": dump_all(ActivityResponse, detail.activity),
            "messages": dump_all(MessageResponse, detail.messages),
        }

    @router.put("/{project_id}/status")
    async def update_status(
        project_id: UUID,
        payload: StatusUpdate,
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        project = await controller.update_status(actor, project_id, payload.status, payload.note)
        return {"project": dump(ProjectResponse, project)}

    @router.post("/{project_id}/cancel")
    async def cancel_project(
        project_id: UUID,
        payload: ReasonPayload | None = None,
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        reason = payload.reason if payload is not None else None
        project = await controller.cancel(actor, project_id, reason)
        return {"project": dump(ProjectResponse, project)}

    @router.patch("/{project_id}")
    async def patch_project(
        project_id: UUID,
        payload: ProjectPatch,
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        project = await controller.set_featured(actor, project_id, payload.featured)
        return {"project": dump(ProjectResponse, project)}

    @router.post("/{project_id}/notes", status_code=http_status.HTTP_201_CREATED)
    async def add_note(
        project_id: UUID,
        payload: NotePayload,
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        entry = await controller.add_note(actor, project_id, payload.note)
        return {"entry": dump(ActivityResponse, entry)}

    @router.get("/{project_id}/activity")
    async def list_activity(
        project_id: UUID,
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        entries = await controller.list_activity(actor, project_id)
        return {"activity_log": dump_all(ActivityResponse, entries)}

    @router.post("/{project_id}/media", status_code=http_status.HTTP_201_CREATED)
    async def register_media(
        project_id: UUID,
        payload: MediaPayload,
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        media = await controller.register_media(actor, project_id, payload.media)
        return {"media": dump_all(FileResponse, media)}

    @router.delete("/{project_id}/media/{media_id}")
    async def delete_media(
        project_id: UUID,
        media_id: UUID,
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        await controller.delete_media(actor, project_id, media_id)
        return {"success": True}

    @router.post("/{project_id}/attachments", status_code=http_status.HTTP_201_CREATED)
    async def register_attachments(
        project_id: UUID,
        payload: AttachmentPayload,
        actor: Actor = Depends(get_actor),  # noqa: B008
        controller: ProjectLifecycleController = Depends(get_controller),  # noqa: B008
    ) -> dict[str, Any]:
        attachments = await controller.register_attachments(
            actor, project_id, payload.attachments
        )
        return {"attachments": dump_all(FileResponse, attachments)}

    return router
