"""SQLAlchemy declarative base and common column mixins for Geodesk.

This module defines the DeclarativeBase class, a TimestampMixin that
provides id, created_at, and updated_at columns, and the portable column
types shared by the models (JSON that becomes JSONB on PostgreSQL, money
and quantity numerics).

Example:
    >>> class MyModel(TimestampMixin, Base):
    ...     __tablename__ = "my_table"
    ...     name: Mapped[str] = mapped_column(Text, nullable=False)
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Numeric, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

JsonDocument = JSON().with_variant(JSONB(), "postgresql")
Money = Numeric(14, 2)
Quantity = Numeric(14, 3)
Factor = Numeric(10, 4)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """SQLAlchemy 2.0 declarative base for all Geodesk models."""

    pass


class TimestampMixin:
    """Mixin providing id (UUID), created_at, and updated_at columns.

    Identifiers and creation timestamps are generated client-side so that
    rows inserted within one request keep their insertion order; the
    server defaults cover rows written by other tools.

    Attributes:
        id: UUID primary key.
        created_at: Timestamp set on row creation.
        updated_at: Timestamp set on creation and each modification.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )
