"""Geodesk - Project lifecycle and quotation service for survey engagements.

This package tracks client requests for quote through a fixed status state
machine, prices and persists quotes, keeps an append-only audit trail and
a per-project message thread, and delivers email notifications whose
replies are threaded back onto the originating project.
"""

__version__ = "0.1.0"
