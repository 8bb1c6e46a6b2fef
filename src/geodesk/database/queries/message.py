"""Project message query functions for Geodesk."""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geodesk.database.models.message import ProjectMessage

logger = structlog.get_logger(__name__)


async def insert_message(session: AsyncSession, **fields: Any) -> ProjectMessage:
    """Insert a message and commit it.

    Returns:
        The persisted ProjectMessage.
    """
    message = ProjectMessage(**fields)
    session.add(message)
    await session.commit()
    await session.refresh(message)

    logger.debug(
        "project_message_inserted",
        project_id=str(message.project_id),
        message_id=str(message.id),
        source=message.source.value,
        is_internal=message.is_internal,
    )
    return message


async def list_messages(
    session: AsyncSession,
    project_id: UUID,
    include_internal: bool,
) -> list[ProjectMessage]:
    """Return a project's thread, oldest first.

    Args:
        session: Active async database session.
        project_id: Project whose messages to read.
        include_internal: Whether staff-only messages are included.

    Returns:
        List of messages in chronological order.
    """
    stmt = select(ProjectMessage).where(ProjectMessage.project_id == project_id)
    if not include_internal:
        stmt = stmt.where(ProjectMessage.is_internal.is_(False))
    stmt = stmt.order_by(ProjectMessage.created_at.asc())

    result = await session.execute(stmt)
    return list(result.scalars().all())
