"""Audit ledger: append-only record of project events."""

from geodesk.audit.ledger import AuditAction, AuditLedger

__all__ = ["AuditAction", "AuditLedger"]
