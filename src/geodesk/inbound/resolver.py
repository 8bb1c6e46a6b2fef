"""Inbound thread resolver.

Maps an inbound email to a project through its reply-to alias
(``project+<id>@<inbound-domain>``) and appends it to the project thread.

Outcomes the provider cannot act on (no alias, empty body, unknown
project, body fetch failure) are reported as ``ok=False`` results rather
than errors: the webhook endpoint answers them with 200 so the provider
does not retry.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from geodesk.audit.ledger import AuditAction, AuditLedger
from geodesk.config import AuthConfig, WebhookConfig
from geodesk.database.models.message import MessageSource
from geodesk.database.queries import message as message_queries
from geodesk.database.queries import profile as profile_queries
from geodesk.database.queries import project as project_queries
from geodesk.inbound.receiving import ReceivingClient, ReceivingError
from geodesk.lifecycle.authz import Actor
from geodesk.notifications.notifier import ProjectNotifier

logger = structlog.get_logger(__name__)

PROJECT_ALIAS_RE = re.compile(r"project\+([a-f0-9-]+)@", re.IGNORECASE)
ANGLE_ADDRESS_RE = re.compile(r".*<(.+)>.*")
REPLY_BOILERPLATE_RE = re.compile(r"\n--\n|\nOn .+ wrote:|\n_{3,}")
_STYLE_RE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

EMAIL_RECEIVED_EVENT = "email.received"


@dataclass(frozen=True)
class InboundEmail:
    """Metadata and body reference extracted from a webhook payload."""

    sender: str | None
    recipient: str | None
    subject: str | None
    text: str = ""
    email_id: str | None = None


@dataclass(frozen=True)
class InboundResult:
    """Outcome of handling one inbound email."""

    ok: bool
    reason: str | None = None
    message_id: UUID | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "message_id": str(self.message_id) if self.message_id else None}
        return {"ok": False, "reason": self.reason}


def strip_html(html: str) -> str:
    """Flatten HTML to a single line of text."""
    text = _STYLE_RE.sub("", html)
    text = _SCRIPT_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_body(text: str, max_length: int = 20_000) -> str:
    """Truncate, normalise newlines and drop quoted-reply boilerplate."""
    text = text[:max_length].replace("\r\n", "\n")
    return REPLY_BOILERPLATE_RE.split(text, maxsplit=1)[0].strip()


def extract_project_id(recipient: str | None) -> UUID | None:
    """Project id encoded in a reply-to alias, if any."""
    if not recipient:
        return None
    match = PROJECT_ALIAS_RE.search(recipient)
    if match is None:
        return None
    try:
        return UUID(match.group(1))
    except ValueError:
        return None


def extract_sender_email(sender: Any) -> str:
    """Bare address from ``Name <addr>``, a plain address or ``{"address": ...}``."""
    if isinstance(sender, str):
        match = ANGLE_ADDRESS_RE.match(sender)
        return (match.group(1) if match else sender).strip()
    if isinstance(sender, dict):
        address = sender.get("address")
        return address.strip() if isinstance(address, str) else ""
    return ""


def _first(value: Any) -> str | None:
    if isinstance(value, list):
        return value[0] if value and isinstance(value[0], str) else None
    return value if isinstance(value, str) else None


def parse_payload(payload: dict[str, Any]) -> InboundEmail:
    """Read a provider event or a legacy flat payload."""
    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}

    if payload.get("type") == EMAIL_RECEIVED_EVENT and data.get("email_id"):
        return InboundEmail(
            sender=data.get("from") if isinstance(data.get("from"), str) else None,
            recipient=_first(data.get("to")),
            subject=data.get("subject"),
            email_id=str(data["email_id"]),
        )

    text = payload.get("text") or payload.get("text_plain") or data.get("stripped_text") or ""
    return InboundEmail(
        sender=payload.get("from"),
        recipient=_first(payload.get("to")),
        subject=payload.get("subject"),
        text=str(text),
    )


class InboundThreadResolver:
    """Appends inbound email replies to project threads."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ledger: AuditLedger,
        notifier: ProjectNotifier,
        receiving: ReceivingClient,
        webhook_config: WebhookConfig | None = None,
        auth_config: AuthConfig | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.ledger = ledger
        self.notifier = notifier
        self.receiving = receiving
        self.webhook_config = webhook_config or WebhookConfig()
        self.auth_config = auth_config or AuthConfig()

    async def _body(self, email: InboundEmail) -> tuple[str | None, str | None]:
        """Return (raw text, failure reason)."""
        if email.email_id is None:
            return email.text, None

        if not self.receiving.enabled:
            logger.warning("inbound_receiving_not_configured", email_id=email.email_id)
            return None, "receiving not configured"
        try:
            received = await self.receiving.fetch(email.email_id)
        except ReceivingError as e:
            return None, str(e)

        if received.text:
            return received.text, None
        return (strip_html(received.html) if received.html else ""), None

    async def handle(self, payload: dict[str, Any]) -> InboundResult:
        """Resolve and record one inbound email."""
        email = parse_payload(payload)

        raw_text, failure = await self._body(email)
        if failure is not None:
            return self._ignored(failure, email)

        body = clean_body(raw_text or "", self.webhook_config.inbound_body_max)
        if not body:
            return self._ignored("empty body", email)

        project_id = extract_project_id(email.recipient)
        if project_id is None:
            return self._ignored("no project id", email)

        sender_email = extract_sender_email(email.sender)

        async with self.session_factory() as session:
            project = await project_queries.get_project(session, project_id)
            if project is None:
                return self._ignored("unknown project", email)

            profile = await profile_queries.find_profile_by_email(session, sender_email)
            if profile is not None:
                sender = Actor.from_profile(
                    profile,
                    staff_roles=self.auth_config.staff_roles,
                    client_role=self.auth_config.client_role,
                )
            else:
                sender = Actor.external(sender_email)

            message = await message_queries.insert_message(
                session,
                project_id=project_id,
                sender_id=profile.id if profile is not None else None,
                sender_name=sender.name,
                sender_role=sender.role,
                body=body,
                is_internal=False,
                source=MessageSource.email,
            )
            entry = await self.ledger.record(
                session,
                project_id,
                sender,
                AuditAction.MESSAGE_RECEIVED_EMAIL,
                details={"subject": email.subject, "from": sender_email},
            )

        logger.info(
            "inbound_email_threaded",
            project_id=str(project_id),
            message_id=str(message.id),
            matched_profile=profile is not None,
        )
        self.notifier.email_reply(
            project, sender, email.subject, body, event_id=f"activity-{entry.id}"
        )
        return InboundResult(ok=True, message_id=message.id)

    def _ignored(self, reason: str, email: InboundEmail) -> InboundResult:
        logger.info(
            "inbound_email_ignored",
            reason=reason,
            recipient=email.recipient,
            email_id=email.email_id,
        )
        return InboundResult(ok=False, reason=reason)
