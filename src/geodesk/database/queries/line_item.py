"""Quote line item query functions for Geodesk.

Line items are replaced as a set: delete everything for the project, then
insert the new rows. The two statements commit separately.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from geodesk.database.models.line_item import QuoteLineItem

logger = structlog.get_logger(__name__)


async def list_line_items(session: AsyncSession, project_id: UUID) -> list[QuoteLineItem]:
    """Return a project's line items in display order."""
    stmt = (
        select(QuoteLineItem)
        .where(QuoteLineItem.project_id == project_id)
        .order_by(QuoteLineItem.sort_order, QuoteLineItem.created_at)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def delete_line_items(session: AsyncSession, project_id: UUID) -> int:
    """Delete every line item of a project.

    Returns:
        Number of rows deleted.
    """
    result = await session.execute(
        delete(QuoteLineItem).where(QuoteLineItem.project_id == project_id)
    )
    await session.commit()
    logger.debug("line_items_deleted", project_id=str(project_id), count=result.rowcount)
    return result.rowcount


async def insert_line_items(session: AsyncSession, rows: list[dict[str, Any]]) -> int:
    """Insert line item rows in one statement.

    Args:
        session: Active async database session.
        rows: Column dictionaries, each including project_id.

    Returns:
        Number of rows inserted.
    """
    if not rows:
        return 0
    await session.execute(insert(QuoteLineItem), rows)
    await session.commit()
    logger.debug("line_items_inserted", count=len(rows))
    return len(rows)
