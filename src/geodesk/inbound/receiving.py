"""Client for the email provider's receiving API.

Inbound webhook events carry only metadata; the body of a received email
is fetched with a second authenticated request.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from geodesk.config import EmailConfig
from geodesk.logging import get_logger

logger = get_logger(__name__)


class ReceivingError(Exception):
    """Raised when a received email cannot be fetched."""


@dataclass(frozen=True)
class ReceivedEmail:
    """Body of a received email as returned by the provider."""

    text: str | None = None
    html: str | None = None


def _as_text(value: object) -> str | None:
    return value if isinstance(value, str) else None


class ReceivingClient:
    """Fetches received email bodies from the provider."""

    def __init__(self, config: EmailConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self.config.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, email_id: str) -> ReceivedEmail:
        """Fetch one received email.

        Raises:
            ReceivingError: On transport failure, a non-2xx response or a
                body that is not a JSON object.
        """
        url = f"{self.config.api_url.rstrip('/')}/emails/receiving/{email_id}"
        try:
            client = await self._get_client()
            response = await client.get(
                url, headers={"Authorization": f"Bearer {self.config.api_key}"}
            )
        except httpx.RequestError as e:
            logger.error("receiving_fetch_error", email_id=email_id, error=str(e))
            raise ReceivingError("fetch body failed") from e

        if not response.is_success:
            logger.error(
                "receiving_fetch_failed",
                email_id=email_id,
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            raise ReceivingError(f"failed to fetch email: {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            logger.error("receiving_fetch_malformed", email_id=email_id, error=str(e))
            raise ReceivingError("fetch body failed") from e
        if not isinstance(body, dict):
            logger.error("receiving_fetch_malformed", email_id=email_id, error="not an object")
            raise ReceivingError("fetch body failed")

        return ReceivedEmail(text=_as_text(body.get("text")), html=_as_text(body.get("html")))
