"""Activity log model for Geodesk.

Each row is an immutable fact about a project: who did what, with the old
and new value where a value changed. Rows are only ever inserted; the
autoincrementing id gives the ledger a total order.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from geodesk.database.models.base import Base, JsonDocument, utcnow


class ActivityLogEntry(Base):
    """An immutable audit fact.

    Attributes:
        id: Monotonic sequence number.
        project_id: Project the fact belongs to.
        user_id / user_name / user_role: Actor identity at the time.
        action: Action code, e.g. ``status_changed``.
        old_value / new_value: Optional before/after values.
        details: Optional structured detail.
        created_at: When the fact was recorded.
    """

    __tablename__ = "activity_log"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    user_name: Mapped[str] = mapped_column(Text, nullable=False)
    user_role: Mapped[str] = mapped_column(Text, nullable=False)
    action: Mapped[str] = mapped_column(Text, nullable=False)
    old_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict[str, Any] | None] = mapped_column(JsonDocument, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
