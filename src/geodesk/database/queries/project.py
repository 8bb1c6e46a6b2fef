"""Project query functions for Geodesk.

Provides async functions for creating, reading and updating Project rows
using the SQLAlchemy 2.0 select()/update() API. Every write commits on its
own; status changes go through compare_and_set_status so that a write only
lands if the status read by the caller is still current.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from geodesk.database.models.project import Project, ProjectStatus

logger = structlog.get_logger(__name__)


async def create_project(session: AsyncSession, **fields: Any) -> Project:
    """Insert a new project.

    Args:
        session: Active async database session.
        **fields: Column values for the new row.

    Returns:
        The newly created Project instance.
    """
    project = Project(**fields)
    session.add(project)
    await session.commit()
    await session.refresh(project)

    logger.info(
        "project_created",
        project_id=str(project.id),
        client_id=str(project.client_id),
        status=project.status.value,
    )
    return project


async def get_project(session: AsyncSession, project_id: UUID) -> Project | None:
    """Retrieve a project by ID, reloading any cached instance.

    Args:
        session: Active async database session.
        project_id: UUID of the project to retrieve.

    Returns:
        The Project instance if found, None otherwise.
    """
    stmt = (
        select(Project)
        .where(Project.id == project_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_projects(
    session: AsyncSession,
    client_id: UUID | None = None,
) -> list[Project]:
    """List projects newest first, optionally restricted to one client.

    Args:
        session: Active async database session.
        client_id: When given, only this client's projects are returned.

    Returns:
        List of matching Project instances.
    """
    stmt = select(Project)
    if client_id is not None:
        stmt = stmt.where(Project.client_id == client_id)
    stmt = stmt.order_by(Project.created_at.desc())

    result = await session.execute(stmt)
    return list(result.scalars().all())


async def update_project(
    session: AsyncSession,
    project_id: UUID,
    **values: Any,
) -> Project | None:
    """Unconditionally update a project's fields.

    Args:
        session: Active async database session.
        project_id: UUID of the project to update.
        **values: Column names and values to write.

    Returns:
        The reloaded Project, or None if no row matched.
    """
    stmt = update(Project).where(Project.id == project_id).values(**values)
    result = await session.execute(stmt)
    await session.commit()

    if result.rowcount == 0:
        logger.warning("project_not_found_for_update", project_id=str(project_id))
        return None

    logger.info(
        "project_updated",
        project_id=str(project_id),
        fields_updated=sorted(values.keys()),
    )
    return await get_project(session, project_id)


async def compare_and_set_status(
    session: AsyncSession,
    project_id: UUID,
    expected: ProjectStatus,
    target: ProjectStatus,
    **values: Any,
) -> Project | None:
    """Write a new status only if the row still holds the expected status.

    The guard and the write are one UPDATE statement, so two callers that
    read the same status cannot both succeed.

    Args:
        session: Active async database session.
        project_id: UUID of the project to update.
        expected: Status the caller observed.
        target: Status to write.
        **values: Additional columns to write alongside the status.

    Returns:
        The reloaded Project, or None if the status no longer matched.
    """
    stmt = (
        update(Project)
        .where(Project.id == project_id, Project.status == expected)
        .values(status=target, **values)
    )
    result = await session.execute(stmt)
    await session.commit()

    if result.rowcount == 0:
        logger.warning(
            "project_status_compare_failed",
            project_id=str(project_id),
            expected=expected.value,
            target=target.value,
        )
        return None

    logger.info(
        "project_status_written",
        project_id=str(project_id),
        from_status=expected.value,
        to_status=target.value,
    )
    return await get_project(session, project_id)
