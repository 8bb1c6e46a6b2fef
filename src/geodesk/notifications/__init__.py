"""Outbound email, notification outbox and webhook verification."""

from geodesk.notifications.delivery import NotificationDelivery, project_reply_to
from geodesk.notifications.email import EmailClient, SendResult, html_to_text
from geodesk.notifications.messages import (
    NotificationJob,
    OutboundEmail,
    ParticipantNotice,
    TeamNotice,
)
from geodesk.notifications.notifier import ProjectNotifier
from geodesk.notifications.outbox import DeadLetter, NotificationOutbox
from geodesk.notifications.recipients import RecipientResolver, Recipients
from geodesk.notifications.rendering import EmailRenderer
from geodesk.notifications.webhook import WebhookVerificationError, verify_webhook

__all__ = [
    "DeadLetter",
    "EmailClient",
    "EmailRenderer",
    "NotificationDelivery",
    "NotificationJob",
    "NotificationOutbox",
    "OutboundEmail",
    "ParticipantNotice",
    "ProjectNotifier",
    "RecipientResolver",
    "Recipients",
    "SendResult",
    "TeamNotice",
    "WebhookVerificationError",
    "html_to_text",
    "project_reply_to",
    "verify_webhook",
]
