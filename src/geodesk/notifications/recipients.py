"""Recipient resolution for project notifications.

The team inbox (``email.notification_to``) receives every notification;
when it is not configured, every staff profile's email is used instead.
Project-scoped notifications add the project's client email, then remove
the triggering actor's own address. The configured CC list is always
attached.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from geodesk.config import EmailConfig
from geodesk.database.queries import profile as profile_queries
from geodesk.database.queries import project as project_queries


@dataclass(frozen=True)
class Recipients:
    """Resolved addresses for one email."""

    to: tuple[str, ...]
    cc: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.to)


class RecipientResolver:
    """Resolves team and participant recipients from config and profiles."""

    def __init__(self, config: EmailConfig, staff_roles: Iterable[str]) -> None:
        self.config = config
        self.staff_roles = tuple(staff_roles)

    async def _team_addresses(self, session: AsyncSession) -> list[str]:
        if self.config.notification_to:
            return [self.config.notification_to.strip()]
        return await profile_queries.list_emails_for_roles(session, self.staff_roles)

    async def team(self, session: AsyncSession) -> Recipients:
        """Recipients of staff-only notifications."""
        addresses = _unique(await self._team_addresses(session))
        return Recipients(to=tuple(addresses), cc=tuple(self.config.cc_list))

    async def participants(
        self,
        session: AsyncSession,
        project_id: UUID,
        exclude_user_id: UUID | None = None,
    ) -> Recipients:
        """Recipients of a project-scoped notification.

        Args:
            session: Active async database session.
            project_id: Project whose participants are notified.
            exclude_user_id: Profile whose email is removed from the result.

        Returns:
            Recipients; empty when the project is unknown or nobody remains.
        """
        project = await project_queries.get_project(session, project_id)
        if project is None:
            return Recipients(to=())

        addresses = await self._team_addresses(session)
        if project.client_email:
            addresses.append(project.client_email.strip())

        if exclude_user_id is not None:
            sender = await profile_queries.get_profile(session, exclude_user_id)
            if sender is not None and sender.email:
                excluded = sender.email.strip().lower()
                addresses = [a for a in addresses if a.lower() != excluded]

        return Recipients(to=tuple(_unique(addresses)), cc=tuple(self.config.cc_list))


def _unique(addresses: Iterable[str]) -> list[str]:
    """Drop blanks and case-insensitive duplicates, keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for address in addresses:
        key = address.strip().lower()
        if key and key not in seen:
            seen.add(key)
            result.append(address.strip())
    return result
