"""Read-only profile lookups for Geodesk."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from geodesk.database.models.profile import Profile


async def get_profile(session: AsyncSession, profile_id: UUID) -> Profile | None:
    """Return a profile by id."""
    result = await session.execute(select(Profile).where(Profile.id == profile_id))
    return result.scalar_one_or_none()


async def find_profile_by_email(session: AsyncSession, email: str) -> Profile | None:
    """Return the first profile whose email matches case-insensitively."""
    if not email:
        return None
    stmt = (
        select(Profile)
        .where(func.lower(Profile.email) == email.strip().lower())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_emails_for_roles(session: AsyncSession, roles: Iterable[str]) -> list[str]:
    """Return the non-empty emails of every profile holding one of the roles."""
    stmt = select(Profile.email).where(Profile.role.in_(list(roles)))
    result = await session.execute(stmt)
    return [email.strip() for email in result.scalars().all() if email and email.strip()]
