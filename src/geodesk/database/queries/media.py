"""Media and attachment registry query functions for Geodesk."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from geodesk.database.models.media import ProjectMedia, RequestAttachment


async def insert_media(session: AsyncSession, rows: list[dict[str, Any]]) -> list[ProjectMedia]:
    """Register media rows and return them."""
    media = [ProjectMedia(**row) for row in rows]
    session.add_all(media)
    await session.commit()
    return media


async def list_media(session: AsyncSession, project_id: UUID) -> list[ProjectMedia]:
    """Return a project's media in display order."""
    stmt = (
        select(ProjectMedia)
        .where(ProjectMedia.project_id == project_id)
        .order_by(ProjectMedia.sort_order, ProjectMedia.created_at)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_media(
    session: AsyncSession,
    project_id: UUID,
    media_id: UUID,
) -> ProjectMedia | None:
    """Return one media row scoped to its project."""
    stmt = select(ProjectMedia).where(
        ProjectMedia.id == media_id,
        ProjectMedia.project_id == project_id,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def delete_media(session: AsyncSession, project_id: UUID, media_id: UUID) -> bool:
    """Delete one media row.

    Returns:
        True if a row was deleted.
    """
    result = await session.execute(
        delete(ProjectMedia).where(
            ProjectMedia.id == media_id,
            ProjectMedia.project_id == project_id,
        )
    )
    await session.commit()
    return result.rowcount > 0


async def insert_attachments(
    session: AsyncSession,
    rows: list[dict[str, Any]],
) -> list[RequestAttachment]:
    """Register attachment rows and return them."""
    attachments = [RequestAttachment(**row) for row in rows]
    session.add_all(attachments)
    await session.commit()
    return attachments


async def list_attachments(session: AsyncSession, project_id: UUID) -> list[RequestAttachment]:
    """Return a project's attachments in upload order."""
    stmt = (
        select(RequestAttachment)
        .where(RequestAttachment.project_id == project_id)
        .order_by(RequestAttachment.created_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
