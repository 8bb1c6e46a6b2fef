"""Quotation engine: persists quotes with a compensating rollback.

Generating a quote writes two tables in three separately committed steps:

    1. update the project (figures, status=quoted, quoted_at=now)
    2. delete the project's existing line items
    3. insert the new line items

If step 3 fails the project is restored to its pre-quote status and
quoted_at is cleared. The same recovery applies when step 2 fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from geodesk.audit.ledger import AuditAction, AuditLedger
from geodesk.config import QuoteConfig
from geodesk.database.models.base import utcnow
from geodesk.database.models.line_item import QuoteLineItem
from geodesk.database.models.project import Project, ProjectStatus
from geodesk.database.queries import line_item as line_item_queries
from geodesk.database.queries import project as project_queries
from geodesk.errors import (
    DependencyError,
    InvalidTransitionError,
    NotFoundError,
    QuoteAlreadyGeneratedError,
    StaleStateError,
    ValidationError,
)
from geodesk.lifecycle.authz import Actor, Capability, requires
from geodesk.lifecycle.narration import narrate
from geodesk.lifecycle.state_machine import is_terminal
from geodesk.notifications.notifier import ProjectNotifier
from geodesk.quotes.calculator import QuoteComputation, QuoteRequest, compute_quote

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class QuoteResult:
    """A persisted quote: the refreshed project and its ordered line items."""

    project: Project
    line_items: list[QuoteLineItem]
    computation: QuoteComputation


class QuotationEngine:
    """Generates, accepts and rejects quotes."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ledger: AuditLedger,
        notifier: ProjectNotifier,
        config: QuoteConfig | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.ledger = ledger
        self.notifier = notifier
        self.config = config or QuoteConfig()

    async def _load(self, session: AsyncSession, project_id: UUID) -> Project:
        project = await project_queries.get_project(session, project_id)
        if project is None:
            raise NotFoundError("Project not found", project_id=str(project_id))
        return project

    async def generate(
        self,
        actor: Actor | None,
        project_id: UUID,
        request: QuoteRequest,
    ) -> QuoteResult:
        """Compute and persist a quote.

        Raises:
            UnauthenticatedError / ForbiddenError: Caller is not staff.
            NotFoundError: Unknown project.
            QuoteAlreadyGeneratedError: Project is quoted and has quoted_at.
            InvalidTransitionError: Project is completed or cancelled.
            ValidationError: Computed total is not greater than zero.
            StaleStateError: Status changed while the quote was being written.
            DependencyError: Line items could not be saved (project restored).
        """
        actor = requires(actor, Capability.staff)

        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            previous = project.status

            if previous is ProjectStatus.quoted and project.quoted_at is not None:
                raise QuoteAlreadyGeneratedError(project_id=str(project_id))
            if is_terminal(previous):
                raise InvalidTransitionError(
                    previous.value, ProjectStatus.quoted.value, str(project_id)
                )

            computation = compute_quote(request, self.config)
            rows = [li.as_row(project_id) for li in computation.line_items]

            updated = await project_queries.compare_and_set_status(
                session,
                project_id,
                expected=previous,
                target=ProjectStatus.quoted,
                quoted_at=utcnow(),
                **computation.project_fields(),
            )
            if updated is None:
                raise StaleStateError(project_id=str(project_id))

            try:
                await line_item_queries.delete_line_items(session, project_id)
                await line_item_queries.insert_line_items(session, rows)
            except SQLAlchemyError as e:
                await self._compensate(session, project_id, previous, e)
                raise DependencyError("Failed to save line items") from e

            entry = await self.ledger.record(
                session,
                project_id,
                actor,
                AuditAction.QUOTE_GENERATED,
                details={
                    "totalJmd": float(computation.total_jmd),
                    "totalUsd": float(computation.total_usd),
                    "lineItemCount": len(rows),
                },
            )
            await narrate(
                session,
                project_id,
                f"Quote generated: ${computation.total_jmd:,.2f} JMD. "
                "Please review and accept or decline.",
                actor,
            )

            project = await self._load(session, project_id)
            line_items = await line_item_queries.list_line_items(session, project_id)

        logger.info(
            "quote_generated",
            project_id=str(project_id),
            total_jmd=str(computation.total_jmd),
            line_item_count=len(rows),
        )
        self.notifier.quote_ready(project, actor, event_id=f"activity-{entry.id}")
        return QuoteResult(project=project, line_items=line_items, computation=computation)

    async def _compensate(
        self,
        session: AsyncSession,
        project_id: UUID,
        previous: ProjectStatus,
        cause: Exception,
    ) -> None:
        """Restore the pre-quote status after a failed line item write."""
        logger.error(
            "quote_line_items_failed",
            project_id=str(project_id),
            restore_status=previous.value,
            error=str(cause),
        )
        await session.rollback()
        await project_queries.update_project(
            session, project_id, status=previous, quoted_at=None
        )
        logger.warning(
            "quote_compensated",
            project_id=str(project_id),
            restored_status=previous.value,
        )

    async def accept(self, actor: Actor | None, project_id: UUID) -> Project:
        """Accept a quote on behalf of the owning client or staff.

        Raises:
            ValidationError: Project is not in the quoted status.
            StaleStateError: Status changed concurrently.
        """
        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            actor = requires(actor, Capability.participant, project)

            if project.status is not ProjectStatus.quoted:
                raise ValidationError(
                    "Quote can only be accepted when status is 'quoted'",
                    status=project.status.value,
                )

            updated = await project_queries.compare_and_set_status(
                session,
                project_id,
                expected=ProjectStatus.quoted,
                target=ProjectStatus.quote_accepted,
                accepted_at=utcnow(),
            )
            if updated is None:
                raise StaleStateError(project_id=str(project_id))

            entry = await self.ledger.record(
                session, project_id, actor, AuditAction.QUOTE_ACCEPTED
            )
            await narrate(session, project_id, f"Quote accepted by {actor.name}.", actor)
            project = await self._load(session, project_id)

        logger.info("quote_accepted", project_id=str(project_id))
        self.notifier.quote_accepted(project, actor, event_id=f"activity-{entry.id}")
        return project

    async def reject(
        self,
        actor: Actor | None,
        project_id: UUID,
        reason: str | None = None,
    ) -> Project:
        """Decline a quote with an optional reason.

        Allowed from any non-terminal status.
        """
        reason = reason.strip() if isinstance(reason, str) and reason.strip() else None

        async with self.session_factory() as session:
            project = await self._load(session, project_id)
            actor = requires(actor, Capability.participant, project)

            previous = project.status
            if is_terminal(previous):
                raise InvalidTransitionError(
                    previous.value, ProjectStatus.quote_rejected.value, str(project_id)
                )

            updated = await project_queries.compare_and_set_status(
                session,
                project_id,
                expected=previous,
                target=ProjectStatus.quote_rejected,
            )
            if updated is None:
                raise StaleStateError(project_id=str(project_id))

            details: dict[str, Any] = {"reason": reason}
            entry = await self.ledger.record(
                session,
                project_id,
                actor,
                AuditAction.QUOTE_REJECTED,
                old_value=previous.value,
                new_value=ProjectStatus.quote_rejected.value,
                details=details,
            )
            body = f"Quote declined by {actor.name}."
            if reason:
                body += f" Reason: {reason}"
            await narrate(session, project_id, body, actor)
            project = await self._load(session, project_id)

        logger.info("quote_rejected", project_id=str(project_id), previous_status=previous.value)
        self.notifier.quote_rejected(project, actor, reason, event_id=f"activity-{entry.id}")
        return project
