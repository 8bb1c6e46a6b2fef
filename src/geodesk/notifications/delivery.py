"""Turns queued notification jobs into provider sends.

Runs inside the outbox worker: resolves recipients with its own database
session, then hands a fully addressed OutboundEmail to the EmailClient.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from geodesk.notifications.email import EmailClient
from geodesk.notifications.messages import (
    NotificationJob,
    OutboundEmail,
    ParticipantNotice,
    TeamNotice,
)
from geodesk.notifications.recipients import RecipientResolver, Recipients

logger = structlog.get_logger(__name__)


class NotificationDelivery:
    """Delivery callable used by NotificationOutbox."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        resolver: RecipientResolver,
        email_client: EmailClient,
    ) -> None:
        self.session_factory = session_factory
        self.resolver = resolver
        self.email_client = email_client

    async def __call__(self, job: NotificationJob) -> bool:
        """Deliver one job.

        Returns:
            True when the job needs no further attempts (sent, skipped
            because email is not configured, or nobody to notify).
        """
        if isinstance(job, OutboundEmail):
            message = job
        else:
            message = await self._address(job)
            if message is None:
                return True

        result = await self.email_client.send(message)
        return result.success or result.skipped

    async def _address(self, job: TeamNotice | ParticipantNotice) -> OutboundEmail | None:
        async with self.session_factory() as session:
            if isinstance(job, TeamNotice):
                recipients = await self.resolver.team(session)
                headers: dict[str, str] = {}
            else:
                recipients = await self.resolver.participants(
                    session, job.project_id, job.exclude_user_id
                )
                headers = {"X-Project-Id": str(job.project_id)}

        if not recipients:
            logger.info(
                "notification_no_recipients",
                job_type=type(job).__name__,
                subject=job.subject,
            )
            return None

        return self._build(job, recipients, headers)

    def _build(
        self,
        job: TeamNotice | ParticipantNotice,
        recipients: Recipients,
        headers: dict[str, str],
    ) -> OutboundEmail:
        reply_to = job.reply_to if isinstance(job, TeamNotice) else None
        if isinstance(job, ParticipantNotice):
            reply_to = project_reply_to(job.project_id, self.email_client.config.inbound_domain)
        return OutboundEmail(
            to=recipients.to,
            cc=recipients.cc,
            subject=job.subject,
            html=job.html,
            reply_to=reply_to,
            headers=headers,
            event_id=job.event_id or f"notify-{uuid.uuid4()}",
        )


def project_reply_to(project_id: object, inbound_domain: str) -> str:
    """Reply-to alias that routes replies back to a project thread."""
    return f"project+{project_id}@{inbound_domain}"
