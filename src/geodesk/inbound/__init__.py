"""Inbound email threading."""

from geodesk.inbound.receiving import ReceivedEmail, ReceivingClient, ReceivingError
from geodesk.inbound.resolver import InboundResult, InboundThreadResolver

__all__ = [
    "InboundResult",
    "InboundThreadResolver",
    "ReceivedEmail",
    "ReceivingClient",
    "ReceivingError",
]
