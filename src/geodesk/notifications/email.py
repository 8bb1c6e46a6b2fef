"""Transactional email client for Geodesk.

Sends email through the provider's REST API with:
- a per-attempt deadline covering the whole request, enforced by
  cancelling the in-flight call
- a bounded retry sequence with increasing delays, applied only to
  retryable statuses (429 and 5xx) and transport errors
- an Idempotency-Key header derived from the domain event id, so that a
  retried send after a partial failure is de-duplicated by the provider

The client never raises for delivery problems: it logs them and returns a
SendResult. A missing API key turns every send into a logged no-op.

Example:
    >>> client = EmailClient(EmailConfig(api_key="re_..."))
    >>> result = await client.send(OutboundEmail(to=("a@example.com",), subject="Hi", html="<p>Hi</p>"))
    >>> result.success
    True
"""

from __future__ import annotations

import asyncio
import html as html_lib
import re
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from geodesk.config import EmailConfig
from geodesk.notifications.messages import OutboundEmail

logger = structlog.get_logger(__name__)

_SCRIPT_RE = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style\b[^>]*>.*?</style\s*>", re.IGNORECASE | re.DOTALL)
_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BLOCK_END_RE = re.compile(r"</(p|div|tr|h[1-6]|li)\s*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_INLINE_SPACE_RE = re.compile(r"[ \t\r\f\v]+")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def html_to_text(html: str) -> str:
    """Derive a plain-text alternative from an HTML body.

    Scripts and styles are removed, line-breaking tags become newlines,
    remaining tags are stripped, entities are decoded and whitespace is
    collapsed.
    """
    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _BREAK_RE.sub("\n", text)
    text = _BLOCK_END_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    text = html_lib.unescape(text)
    text = _INLINE_SPACE_RE.sub(" ", text)
    lines = [line.strip() for line in text.split("\n")]
    text = "\n".join(lines)
    return _BLANK_LINES_RE.sub("\n\n", text).strip()


@dataclass(frozen=True)
class SendResult:
    """Outcome of one send.

    Attributes:
        success: Provider accepted the email.
        message_id: Provider message id on success.
        status_code: Last HTTP status seen, if any.
        error: Failure description, if any.
        skipped: True when sending is not configured.
        attempts: Number of HTTP attempts made.
    """

    success: bool
    message_id: str | None = None
    status_code: int | None = None
    error: str | None = None
    skipped: bool = False
    attempts: int = 0


class EmailClient:
    """Client for the transactional email provider.

    Attributes:
        config: Email configuration.
    """

    def __init__(
        self,
        config: EmailConfig,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the email client.

        Args:
            config: Email configuration.
            client: Optional pre-built HTTP client (tests, shared pools).
            sleep: Awaitable used between attempts.
        """
        self.config = config
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep

    @property
    def enabled(self) -> bool:
        """Whether provider credentials are configured."""
        return bool(self.config.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.api_url,
                timeout=self.config.timeout_seconds,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def sender(self) -> str:
        """Formatted From header."""
        return f"{self.config.from_name} <{self.config.from_address}>"

    def build_payload(self, message: OutboundEmail) -> dict[str, Any]:
        """Build the provider request body for a message."""
        payload: dict[str, Any] = {
            "from": self.sender(),
            "to": list(message.to),
            "subject": message.subject,
            "html": message.html,
            "text": message.text if message.text is not None else html_to_text(message.html),
        }
        if message.cc:
            payload["cc"] = list(message.cc)
        if message.reply_to:
            payload["reply_to"] = message.reply_to
        if message.headers:
            payload["headers"] = dict(message.headers)
        return payload

    @staticmethod
    def idempotency_key(message: OutboundEmail) -> str:
        """Key that lets the provider de-duplicate retried sends."""
        return message.headers.get("X-Event-Id") or message.event_id or str(uuid.uuid4())

    async def send(self, message: OutboundEmail) -> SendResult:
        """Send one email with timeout, retry and idempotency.

        Args:
            message: The fully addressed email.

        Returns:
            SendResult describing the outcome. Never raises for provider
            or transport failures.
        """
        if not self.enabled:
            logger.warning("email_provider_not_configured", subject=message.subject)
            return SendResult(success=False, skipped=True)

        if not message.to:
            logger.warning("email_without_recipients", subject=message.subject)
            return SendResult(success=False, error="no recipients")

        payload = self.build_payload(message)
        key = self.idempotency_key(message)
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "Idempotency-Key": key,
        }
        client = await self._get_client()
        retryable = set(self.config.retry_statuses)
        delays = self.config.retry_delays
        last_status: int | None = None
        last_error: str | None = None

        for attempt, delay in enumerate(delays, start=1):
            if delay:
                await self._sleep(delay)
            try:
                response = await asyncio.wait_for(
                    client.post(
                        f"{self.config.api_url.rstrip('/')}/emails",
                        json=payload,
                        headers=headers,
                        timeout=self.config.timeout_seconds,
                    ),
                    timeout=self.config.timeout_seconds,
                )
            except (httpx.HTTPError, asyncio.TimeoutError) as e:
                last_error = f"{type(e).__name__}: {e}"
                logger.warning(
                    "email_send_attempt_error",
                    attempt=attempt,
                    idempotency_key=key,
                    error=last_error,
                )
                continue

            if response.is_success:
                message_id = _message_id(response)
                logger.info(
                    "email_sent",
                    to=list(message.to),
                    subject=message.subject,
                    message_id=message_id,
                    attempt=attempt,
                )
                return SendResult(
                    success=True,
                    message_id=message_id,
                    status_code=response.status_code,
                    attempts=attempt,
                )

            last_status = response.status_code
            last_error = response.text[:500]
            if response.status_code not in retryable:
                logger.error(
                    "email_send_rejected",
                    status_code=response.status_code,
                    idempotency_key=key,
                    response_text=last_error,
                )
                return SendResult(
                    success=False,
                    status_code=last_status,
                    error=last_error,
                    attempts=attempt,
                )

            logger.warning(
                "email_send_attempt_retryable",
                attempt=attempt,
                status_code=response.status_code,
                idempotency_key=key,
            )

        logger.error(
            "email_send_failed",
            attempts=len(delays),
            status_code=last_status,
            idempotency_key=key,
            error=last_error,
        )
        return SendResult(
            success=False,
            status_code=last_status,
            error=last_error,
            attempts=len(delays),
        )


def _message_id(response: httpx.Response) -> str | None:
    """Extract the provider message id from a success response."""
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("id") if isinstance(body, dict) else None
