"""Activity log query functions for Geodesk.

The ledger is append-only: there is an insert and there are reads, and
nothing else.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geodesk.database.models.activity import ActivityLogEntry


async def insert_activity(session: AsyncSession, **fields: Any) -> ActivityLogEntry:
    """Append one activity entry and commit it."""
    entry = ActivityLogEntry(**fields)
    session.add(entry)
    await session.commit()
    return entry


async def list_activity(
    session: AsyncSession,
    project_id: UUID,
    newest_first: bool = True,
) -> list[ActivityLogEntry]:
    """Return a project's activity log.

    Args:
        session: Active async database session.
        project_id: Project whose ledger to read.
        newest_first: Descending order when True (the audit trail view).

    Returns:
        List of entries ordered by sequence number.
    """
    order = ActivityLogEntry.id.desc() if newest_first else ActivityLogEntry.id.asc()
    stmt = select(ActivityLogEntry).where(ActivityLogEntry.project_id == project_id).order_by(order)
    result = await session.execute(stmt)
    return list(result.scalars().all())
