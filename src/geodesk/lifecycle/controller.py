"""Project lifecycle controller.

Owns the project entity: creation, scoped reads, guarded status changes,
cancellation, advisory metadata, notes, media and attachment registration
and the project message thread.

Every operation follows the same shape:
    1. assert the caller's capability (authz.requires)
    2. read what the decision needs
    3. write, one committed statement at a time; status writes are
       compare-and-set so a concurrent change surfaces as StaleStateError
    4. record the audit fact and narrate in the thread
    5. hand notifications to the outbox (never awaited)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from geodesk.audit.ledger import AuditAction, AuditLedger
from geodesk.database.models.activity import ActivityLogEntry
from geodesk.database.models.base import utcnow
from geodesk.database.models.line_item import QuoteLineItem
from geodesk.database.models.media import ProjectMedia, RequestAttachment
from geodesk.database.models.message import MessageSource, ProjectMessage
from geodesk.database.models.project import Project, ProjectStatus
from geodesk.database.queries import activity as activity_queries
from geodesk.database.queries import line_item as line_item_queries
from geodesk.database.queries import media as media_queries
from geodesk.database.queries import message as message_queries
from geodesk.database.queries import project as project_queries
from geodesk.errors import NotFoundError, StaleStateError, ValidationError
from geodesk.lifecycle.authz import Actor, Capability, authenticated, requires
from geodesk.lifecycle.narration import narrate
from geodesk.lifecycle.schemas import FileReference, ProjectCreate
from geodesk.lifecycle.state_machine import ensure_transition, milestone_values, parse_status
from geodesk.notifications.notifier import ProjectNotifier
from geodesk.storage import ObjectStorage

logger = structlog.get_logger(__name__)

REQUIRED_CREATE_FIELDS = (
    "project_name",
    "project_description",
    "project_location",
    "service_type_id",
)


@dataclass(frozen=True)
class ProjectDetail:
    """A project with everything shown on its detail view."""

    project: Project
    line_items: list[QuoteLineItem]
    activity: list[ActivityLogEntry]
    messages: list[ProjectMessage]
    attachments: list[RequestAttachment]
    media: list[ProjectMedia]


def _text(value: str | None) -> str | None:
    """Trimmed text, or None when blank."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def _decimal(value: float | None) -> Decimal:
    return Decimal(str(value)) if value else Decimal("0")


class ProjectLifecycleController:
    """Entry point for every project operation except quoting."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ledger: AuditLedger,
        notifier: ProjectNotifier,
        storage: ObjectStorage,
    ) -> None:
        self.session_factory = session_factory
        self.ledger = ledger
        self.notifier = notifier
        self.storage = storage

    async def _load(self, session: AsyncSession, project_id: UUID) -> Project:
        project = await project_queries.get_project(session, project_id)
        if project is None:
            raise NotFoundError("Project not found", project_id=str(project_id))
        return project

    async def create(self, actor: Actor | None, data: ProjectCreate) -> Project:
        """Submit a request for quote.

        Raises:
            ForbiddenError: Caller is not a client.
            ValidationError: A required descriptive field is empty.
        """
        actor = requires(actor, Capability.client)

        missing = [name for name in REQUIRED_CREATE_FIELDS if not _text(getattr(data, name))]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                fields=missing,
            )

        async with self.session_factory() as session:
            project = await project_queries.create_project(
                session,
                client_id=actor.id,
                client_name=actor.company or actor.name,
                client_contact=actor.name,
                client_email=actor.email,
                client_phone=actor.phone or None,
                client_address=_text(data.client_address),
                client_address_lat=data.client_address_lat,
                client_address_lng=data.client_address_lng,
                client_address_place_id=data.client_address_place_id,
                project_name=_text(data.project_name),
                project_description=_text(data.project_description),
                project_location=_text(data.project_location),
                project_address=_text(data.project_address),
                project_address_lat=data.project_address_lat,
                project_address_lng=data.project_address_lng,
                project_address_place_id=data.project_address_place_id,
                service_type_id=_text(data.service_type_id),
                investigation_type=_text(data.investigation_type),
                survey_area_sqm=Decimal(str(data.survey_area_sqm)) if data.survey_area_sqm else None,
                clearance_access=bool(data.clearance_access),
                mobilization_cost=_decimal(data.mobilization_cost),
                accommodation_cost=_decimal(data.accommodation_cost),
                service_head_count=data.service_head_count or 1,
                client_notes=_text(data.notes),
                status=ProjectStatus.rfq_submitted,
            )
            await self.ledger.record(
                session,
                project.id,
                actor,
                AuditAction.RFQ_SUBMITTED,
                details={
                    "projectName": project.project_name,
                    "surveyAreaSqm": data.survey_area_sqm,
                },
            )
            await narrate(
                session,
                project.id,
                f'New request submitted by {actor.name} for "{project.project_name}".',
            )

        self.notifier.rfq_submitted(project, actor)
        return project

    async def list_projects(self, actor: Actor | None) -> list[Project]:
        """Projects visible to the caller: staff see all, others their own."""
        actor = authenticated(actor)
        async with self.session_factory() as session:
            client_id = None if actor.is_staff else actor.id
            return await project_queries.list_projects(session, client_id=client_id)

    async def get(self, actor: Actor | None, project_id: UUID) -> ProjectDetail:
        """Project detail; internal messages are hidden from non-staff."""
        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            actor = requires(actor, Capability.participant, project)

            return ProjectDetail(
                project=project,
                line_items=await line_item_queries.list_line_items(session, project_id),
                activity=await activity_queries.list_activity(session, project_id),
                messages=await message_queries.list_messages(
                    session, project_id, include_internal=actor.is_staff
                ),
                attachments=await media_queries.list_attachments(session, project_id),
                media=await media_queries.list_media(session, project_id),
            )

    async def update_status(
        self,
        actor: Actor | None,
        project_id: UUID,
        status: str,
        note: str | None = None,
    ) -> Project:
        """Move a project along the state machine.

        Raises:
            ValidationError: Unknown status string.
            NotFoundError: Unknown project.
            InvalidTransitionError: Target not reachable from current status.
            StaleStateError: Status changed since it was read.
        """
        actor = requires(actor, Capability.staff)
        target = parse_status(status)
        if target is None:
            raise ValidationError("Invalid status", status=status)
        note = _text(note)

        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            current = project.status
            ensure_transition(current, target, str(project_id))

            updated = await project_queries.compare_and_set_status(
                session,
                project_id,
                expected=current,
                target=target,
                **milestone_values(target, utcnow()),
            )
            if updated is None:
                raise StaleStateError(project_id=str(project_id))

            entry = await self.ledger.record(
                session,
                project_id,
                actor,
                AuditAction.STATUS_CHANGED,
                old_value=current.value,
                new_value=target.value,
                details={"note": note} if note else None,
            )
            body = f"Status changed to **{target.label}**"
            if note:
                body += f": {note}"
            await narrate(session, project_id, body, actor)

        self.notifier.status_changed(updated, actor, target, note, event_id=f"activity-{entry.id}")
        return updated

    async def cancel(
        self,
        actor: Actor | None,
        project_id: UUID,
        reason: str | None = None,
    ) -> Project:
        """Cancel a non-terminal project (owning client or staff)."""
        reason = _text(reason) or "No reason provided"

        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            actor = requires(actor, Capability.participant, project)
            current = project.status
            ensure_transition(current, ProjectStatus.cancelled, str(project_id))

            updated = await project_queries.compare_and_set_status(
                session,
                project_id,
                expected=current,
                target=ProjectStatus.cancelled,
            )
            if updated is None:
                raise StaleStateError(project_id=str(project_id))

            entry = await self.ledger.record(
                session,
                project_id,
                actor,
                AuditAction.PROJECT_CANCELLED,
                old_value=current.value,
                new_value=ProjectStatus.cancelled.value,
                details={"reason": reason},
            )
            await narrate(session, project_id, f"Request cancelled. Reason: {reason}", actor)

        self.notifier.project_cancelled(updated, actor, reason, event_id=f"activity-{entry.id}")
        return updated

    async def set_featured(self, actor: Actor | None, project_id: UUID, featured: object) -> Project:
        """Toggle the advisory featured flag; non-boolean input is a no-op."""
        actor = requires(actor, Capability.staff)

        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            if not isinstance(featured, bool):
                return project

            featured_at = (project.featured_at or utcnow()) if featured else None
            updated = await project_queries.update_project(
                session, project_id, featured=featured, featured_at=featured_at
            )
            if updated is None:
                raise NotFoundError("Project not found", project_id=str(project_id))

        logger.info("project_featured_set", project_id=str(project_id), featured=featured)
        return updated

    async def add_note(
        self,
        actor: Actor | None,
        project_id: UUID,
        note: str | None,
    ) -> ActivityLogEntry:
        """Record a free-text note on the project's audit trail."""
        note = _text(note)
        if note is None:
            raise ValidationError("Note is required")

        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            actor = requires(actor, Capability.participant, project)
            return await self.ledger.record(
                session, project_id, actor, AuditAction.NOTE_ADDED, details={"note": note}
            )

    async def list_activity(self, actor: Actor | None, project_id: UUID) -> list[ActivityLogEntry]:
        """Audit trail, newest first."""
        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            requires(actor, Capability.participant, project)
            return await activity_queries.list_activity(session, project_id)

    async def register_media(
        self,
        actor: Actor | None,
        project_id: UUID,
        items: list[FileReference],
    ) -> list[ProjectMedia]:
        """Register uploaded media (staff or the owning client)."""
        if not items:
            raise ValidationError("media array required")

        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            actor = requires(actor, Capability.participant, project)

            rows = [
                {
                    "project_id": project_id,
                    "file_path": item.file_path,
                    "file_name": item.file_name,
                    "file_size": item.file_size,
                    "content_type": item.content_type,
                    "sort_order": item.sort_order if item.sort_order is not None else index,
                }
                for index, item in enumerate(items)
            ]
            media = await media_queries.insert_media(session, rows)
            await self.ledger.record(
                session,
                project_id,
                actor,
                AuditAction.MEDIA_REGISTERED,
                details={"files": [item.file_name for item in items]},
            )
        return media

    async def delete_media(self, actor: Actor | None, project_id: UUID, media_id: UUID) -> None:
        """Remove a media object from storage, then its registry row.

        Raises:
            DependencyError: Storage removal failed; the row is kept.
        """
        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            actor = requires(actor, Capability.participant, project)

            media = await media_queries.get_media(session, project_id, media_id)
            if media is None:
                raise NotFoundError("Media not found", media_id=str(media_id))

            await self.storage.remove([media.file_path])
            await media_queries.delete_media(session, project_id, media_id)
            await self.ledger.record(
                session,
                project_id,
                actor,
                AuditAction.MEDIA_DELETED,
                details={"file": media.file_name},
            )

    async def register_attachments(
        self,
        actor: Actor | None,
        project_id: UUID,
        items: list[FileReference],
    ) -> list[RequestAttachment]:
        """Register request attachments (owning client only)."""
        if not items:
            raise ValidationError("attachments array required")

        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            actor = requires(actor, Capability.owner, project)

            rows = [
                {
                    "project_id": project_id,
                    "file_path": item.file_path,
                    "file_name": item.file_name,
                    "file_size": item.file_size,
                    "content_type": item.content_type,
                }
                for item in items
            ]
            attachments = await media_queries.insert_attachments(session, rows)
            await self.ledger.record(
                session,
                project_id,
                actor,
                AuditAction.ATTACHMENTS_REGISTERED,
                details={"files": [item.file_name for item in items]},
            )
        return attachments

    async def list_messages(self, actor: Actor | None, project_id: UUID) -> list[ProjectMessage]:
        """The project thread, oldest first; internal messages for staff only."""
        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            actor = requires(actor, Capability.participant, project)
            return await message_queries.list_messages(
                session, project_id, include_internal=actor.is_staff
            )

    async def post_message(
        self,
        actor: Actor | None,
        project_id: UUID,
        body: str | None,
        is_internal: bool = False,
    ) -> ProjectMessage:
        """Post to the project thread and notify participants unless internal."""
        body = _text(body)
        if body is None:
            raise ValidationError("Message body is required")

        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            actor = requires(actor, Capability.participant, project)
            internal = bool(is_internal) and actor.is_staff

            message = await message_queries.insert_message(
                session,
                project_id=project_id,
                sender_id=actor.id,
                sender_name=actor.name,
                sender_role=actor.role,
                body=body,
                is_internal=internal,
                source=MessageSource.panel,
            )
            entry = await self.ledger.record(
                session,
                project_id,
                actor,
                AuditAction.MESSAGE_SENT,
                details={"messageId": str(message.id), "isInternal": internal},
            )

        if not internal:
            self.notifier.message_posted(project, actor, body, event_id=f"activity-{entry.id}")
        return message
