"""Append-only audit ledger for Geodesk.

Every state-changing operation records exactly one fact here. The ledger
exposes a single write operation; the ordered history is read straight
from the activity_log table by whoever needs it.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from geodesk.database.queries import activity as activity_queries

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from geodesk.database.models.activity import ActivityLogEntry
    from geodesk.lifecycle.authz import Actor

logger = structlog.get_logger(__name__)


class AuditAction(str, enum.Enum):
    """Action codes written to the ledger."""

    RFQ_SUBMITTED = "rfq_submitted"
    STATUS_CHANGED = "status_changed"
    PROJECT_CANCELLED = "project_cancelled"
    NOTE_ADDED = "note_added"
    QUOTE_GENERATED = "quote_generated"
    QUOTE_ACCEPTED = "quote_accepted"
    QUOTE_REJECTED = "quote_rejected"
    MESSAGE_SENT = "message_sent"
    MESSAGE_RECEIVED_EMAIL = "message_received_email"
    MEDIA_REGISTERED = "media_registered"
    MEDIA_DELETED = "media_deleted"
    ATTACHMENTS_REGISTERED = "attachments_registered"


class AuditLedger:
    """Records immutable activity facts."""

    async def record(
        self,
        session: AsyncSession,
        project_id: UUID,
        actor: Actor,
        action: AuditAction,
        old_value: str | None = None,
        new_value: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ActivityLogEntry:
        """Append one fact to the project's ledger.

        Args:
            session: Active async database session.
            project_id: Project the fact is about.
            actor: Who performed the action.
            action: Action code.
            old_value: Value before the change, if any.
            new_value: Value after the change, if any.
            details: Structured detail, if any.

        Returns:
            The persisted entry.
        """
        entry = await activity_queries.insert_activity(
            session,
            project_id=project_id,
            user_id=actor.id,
            user_name=actor.name,
            user_role=actor.role,
            action=action.value,
            old_value=old_value or None,
            new_value=new_value or None,
            details=details or None,
        )
        logger.info(
            "audit_recorded",
            project_id=str(project_id),
            action=action.value,
            actor_id=str(actor.id),
        )
        return entry
