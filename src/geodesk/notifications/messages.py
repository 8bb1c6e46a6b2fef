"""Notification jobs handed to the outbox.

Jobs are plain data: building one never touches the network or the
database. Recipient resolution and sending happen later, in the outbox
worker, through NotificationDelivery.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True)
class OutboundEmail:
    """A fully addressed email.

    Attributes:
        to: Primary recipients.
        subject: Subject line (plain text).
        html: HTML body.
        text: Plain-text body; derived from html when None.
        cc: CC recipients.
        reply_to: Reply-To override.
        headers: Extra provider headers.
        event_id: Domain event id used as the idempotency key.
    """

    to: tuple[str, ...]
    subject: str
    html: str
    text: str | None = None
    cc: tuple[str, ...] = ()
    reply_to: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    event_id: str | None = None


@dataclass(frozen=True)
class TeamNotice:
    """An email for the staff team inbox (or every staff profile)."""

    subject: str
    html: str
    reply_to: str | None = None
    event_id: str | None = None


@dataclass(frozen=True)
class ParticipantNotice:
    """An email for every participant of a project except the actor.

    Attributes:
        project_id: Project whose participants are notified.
        subject: Subject line.
        html: HTML body.
        exclude_user_id: Profile whose email is removed from the recipients.
        event_id: Domain event id used as the idempotency key.
    """

    project_id: UUID
    subject: str
    html: str
    exclude_user_id: UUID | None = None
    event_id: str | None = None


NotificationJob = OutboundEmail | TeamNotice | ParticipantNotice
