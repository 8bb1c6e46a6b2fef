"""System messages narrating lifecycle events in a project's thread."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from geodesk.database.models.message import MessageSource, ProjectMessage
from geodesk.database.queries import message as message_queries

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from geodesk.lifecycle.authz import Actor

SYSTEM_SENDER_NAME = "System"
SYSTEM_SENDER_ROLE = "system"


async def narrate(
    session: AsyncSession,
    project_id: UUID,
    body: str,
    actor: Actor | None = None,
) -> ProjectMessage:
    """Append a system-sourced message to the project thread.

    Args:
        session: Active async database session.
        project_id: Project whose thread receives the message.
        body: Message text.
        actor: Who triggered the event; None attributes it to the system.
    """
    return await message_queries.insert_message(
        session,
        project_id=project_id,
        sender_id=actor.id if actor else None,
        sender_name=actor.name if actor else SYSTEM_SENDER_NAME,
        sender_role=actor.role if actor else SYSTEM_SENDER_ROLE,
        body=body,
        is_internal=False,
        source=MessageSource.system,
    )
