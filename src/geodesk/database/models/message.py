"""Project message model for Geodesk.

Messages form the conversation thread of a project. They are written by
people in the panel, by the system narrating lifecycle changes, and by the
inbound email resolver when someone replies to a notification.
"""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from geodesk.database.models.base import Base, TimestampMixin


class MessageSource(enum.Enum):
    """Where a message originated.

    States:
        panel: Typed by a user in the application.
        system: Narration generated by a lifecycle operation.
        email: Reply received through the inbound email webhook.
    """

    panel = "panel"
    system = "system"
    email = "email"


class ProjectMessage(TimestampMixin, Base):
    """A message on a project thread.

    Attributes:
        project_id: Owning project.
        sender_id: Profile id of the sender (None for system or unknown senders).
        sender_name / sender_role: Display identity of the sender.
        body: Message text.
        is_internal: Hidden from clients when True.
        source: Origin of the message.
    """

    __tablename__ = "project_messages"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        index=True,
    )
    sender_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    sender_name: Mapped[str] = mapped_column(Text, nullable=False)
    sender_role: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    source: Mapped[MessageSource] = mapped_column(
        Enum(MessageSource, name="message_source"),
        default=MessageSource.panel,
        nullable=False,
    )
