"""Inbound webhook signature verification.

The email provider signs each webhook delivery with HMAC-SHA256:

    signed_content = f"{svix_id}.{svix_timestamp}.{raw_body}"
    signature = base64url(hmac_sha256(base64decode(secret[6:]), signed_content))

and sends it in the ``svix-signature`` header as one or more
space-separated ``v1,<signature>`` candidates. A delivery is accepted when
any candidate matches and its timestamp lies within the tolerance window.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import time
from collections.abc import Mapping

import structlog

logger = structlog.get_logger(__name__)

SECRET_PREFIX = "whsec_"
ID_HEADER = "svix-id"
TIMESTAMP_HEADER = "svix-timestamp"
SIGNATURE_HEADER = "svix-signature"


class WebhookVerificationError(Exception):
    """Raised when a webhook delivery fails verification.

    Attributes:
        reason: Short machine-readable reason.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Webhook verification failed: {reason}")


def decode_secret(secret: str) -> bytes:
    """Decode a ``whsec_`` secret into raw key bytes.

    Both standard and url-safe base64 alphabets are accepted, with or
    without padding.

    Raises:
        WebhookVerificationError: If the secret is not valid base64.
    """
    raw = secret[len(SECRET_PREFIX):] if secret.startswith(SECRET_PREFIX) else secret
    raw = raw.replace("-", "+").replace("_", "/")
    raw += "=" * (-len(raw) % 4)
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise WebhookVerificationError("malformed_secret") from e


def _normalize(signature: str) -> str:
    """Reduce a base64 signature to url-safe form without padding."""
    return signature.strip().replace("+", "-").replace("/", "_").rstrip("=")


def compute_signature(
    secret: str, message_id: str, timestamp: str, body: bytes | str
) -> str:
    """Compute the url-safe, unpadded signature for a delivery.

    The body is signed as raw bytes; text bodies are UTF-8 encoded first.
    """
    key = decode_secret(secret)
    raw = body.encode() if isinstance(body, str) else body
    content = f"{message_id}.{timestamp}.".encode() + raw
    digest = hmac.new(key, content, hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode().rstrip("=")


def verify_webhook(
    body: bytes | str,
    headers: Mapping[str, str],
    secret: str,
    tolerance_seconds: int = 300,
    now: float | None = None,
) -> None:
    """Verify a webhook delivery.

    Args:
        body: Raw request body exactly as received.
        headers: Request headers (case-insensitive mapping recommended).
        secret: Signing secret; must be non-empty.
        tolerance_seconds: Maximum allowed distance from the current time.
        now: Current UNIX time override.

    Raises:
        WebhookVerificationError: On any missing input, stale timestamp or
            signature mismatch.
    """
    if not secret:
        raise WebhookVerificationError("missing_secret")

    message_id = headers.get(ID_HEADER)
    timestamp = headers.get(TIMESTAMP_HEADER)
    signature_header = headers.get(SIGNATURE_HEADER)
    if not message_id or not timestamp or not signature_header:
        raise WebhookVerificationError("missing_headers")

    try:
        sent_at = int(timestamp)
    except ValueError as e:
        raise WebhookVerificationError("malformed_timestamp") from e

    current = time.time() if now is None else now
    if abs(current - sent_at) > tolerance_seconds:
        raise WebhookVerificationError("stale_timestamp")

    expected = compute_signature(secret, message_id, timestamp, body).encode()

    for candidate in signature_header.split(" "):
        if not candidate:
            continue
        value = candidate[3:] if candidate.startswith("v1,") else candidate
        if hmac.compare_digest(_normalize(value).encode(), expected):
            return

    logger.warning("webhook_signature_mismatch", svix_id=message_id)
    raise WebhookVerificationError("signature_mismatch")
