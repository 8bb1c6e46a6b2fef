"""Project notifications.

ProjectNotifier composes the email for each domain event and hands it to
the NotificationOutbox. Every method returns immediately: rendering is
local and enqueueing never blocks, so callers invoke these after their
writes have committed without affecting the response.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog

from geodesk.lifecycle.authz import EXTERNAL_ACTOR_ID
from geodesk.notifications.delivery import project_reply_to
from geodesk.notifications.messages import OutboundEmail, ParticipantNotice, TeamNotice
from geodesk.notifications.outbox import NotificationOutbox
from geodesk.notifications.rendering import EmailRenderer

if TYPE_CHECKING:
    from geodesk.database.models.project import Project, ProjectStatus
    from geodesk.lifecycle.authz import Actor

logger = structlog.get_logger(__name__)


def format_amount(value: Decimal | float | int | None) -> str:
    """Format a currency amount with thousands separators."""
    return f"{Decimal(str(value or 0)):,.2f}"


class ProjectNotifier:
    """Fire-and-forget notifications for project events."""

    def __init__(self, outbox: NotificationOutbox, renderer: EmailRenderer) -> None:
        self.outbox = outbox
        self.renderer = renderer

    @property
    def inbound_domain(self) -> str:
        return self.renderer.config.inbound_domain

    def _participants(
        self,
        project: Project,
        actor: Actor | None,
        subject: str,
        template: str,
        event_id: str | None,
        **context: Any,
    ) -> None:
        html = self.renderer.render(
            template,
            project.id,
            project_name=project.project_name,
            actor_name=actor.name if actor else "Unknown",
            actor_role=actor.role if actor else "",
            **context,
        )
        exclude = actor.id if actor is not None and actor.id != EXTERNAL_ACTOR_ID else None
        self.outbox.enqueue(
            ParticipantNotice(
                project_id=project.id,
                subject=subject,
                html=html,
                exclude_user_id=exclude,
                event_id=event_id,
            )
        )

    def rfq_submitted(self, project: Project, actor: Actor) -> None:
        """Notify the team of a new request and confirm receipt to the client."""
        reply_to = project_reply_to(project.id, self.inbound_domain)
        self.outbox.enqueue(
            TeamNotice(
                subject=f"New RFQ: {project.project_name}",
                html=self.renderer.render(
                    "rfq_team.html.j2",
                    project.id,
                    actor_name=actor.name,
                    project_name=project.project_name,
                    project_location=project.project_location,
                ),
                reply_to=reply_to,
                event_id=f"rfq-admin-{project.id}",
            )
        )

        if not actor.email:
            logger.info("rfq_client_email_skipped", project_id=str(project.id))
            return
        self.outbox.enqueue(
            OutboundEmail(
                to=(actor.email,),
                subject=f"Request Received: {project.project_name}",
                html=self.renderer.render(
                    "rfq_client.html.j2",
                    project.id,
                    actor_name=actor.name,
                    project_name=project.project_name,
                ),
                reply_to=reply_to,
                headers={"X-Project-Id": str(project.id)},
                event_id=f"rfq-client-{project.id}",
            )
        )

    def status_changed(
        self,
        project: Project,
        actor: Actor,
        status: ProjectStatus,
        note: str | None = None,
        event_id: str | None = None,
    ) -> None:
        self._participants(
            project,
            actor,
            f"{project.project_name} — Status: {status.label}",
            "status_changed.html.j2",
            event_id,
            status_label=status.label,
            note=note,
        )

    def project_cancelled(
        self,
        project: Project,
        actor: Actor,
        reason: str | None = None,
        event_id: str | None = None,
    ) -> None:
        self._participants(
            project,
            actor,
            f"{project.project_name} — Cancelled",
            "project_cancelled.html.j2",
            event_id,
            reason=reason,
        )

    def quote_ready(self, project: Project, actor: Actor, event_id: str | None = None) -> None:
        """Tell participants a quote was issued, highlighting the total."""
        total = format_amount(project.total_cost_jmd)
        self._participants(
            project,
            actor,
            f"{project.project_name} — Quote Ready: ${total} JMD",
            "quote_ready.html.j2",
            event_id,
            total_jmd=total,
            total_usd=format_amount(project.total_cost_usd),
        )

    def quote_accepted(self, project: Project, actor: Actor, event_id: str | None = None) -> None:
        self._participants(
            project,
            actor,
            f"{project.project_name} — Quote Accepted",
            "quote_accepted.html.j2",
            event_id,
        )

    def quote_rejected(
        self,
        project: Project,
        actor: Actor,
        reason: str | None = None,
        event_id: str | None = None,
    ) -> None:
        self._participants(
            project,
            actor,
            f"{project.project_name} — Quote Declined",
            "quote_rejected.html.j2",
            event_id,
            reason=reason,
        )

    def message_posted(
        self,
        project: Project,
        actor: Actor,
        body: str,
        event_id: str | None = None,
    ) -> None:
        self._participants(
            project,
            actor,
            f"{project.project_name} — New message from {actor.name}",
            "new_message.html.j2",
            event_id,
            body=body,
        )

    def email_reply(
        self,
        project: Project,
        sender: Actor,
        subject: str | None,
        body: str,
        event_id: str | None = None,
    ) -> None:
        """Relay an inbound email reply to the other participants."""
        self._participants(
            project,
            sender,
            subject or "Reply on project",
            "email_reply.html.j2",
            event_id,
            body=body,
        )
