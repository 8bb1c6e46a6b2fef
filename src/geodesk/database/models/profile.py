"""Profile model for Geodesk.

Profiles are owned by the identity system; Geodesk only reads them to
resolve actors, staff recipients and inbound email senders.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from geodesk.database.models.base import Base


class Profile(Base):
    """A user profile with its role.

    Attributes:
        id: Identity-provider user id.
        name: Display name.
        email: Contact email.
        role: Role string (client, admin, manager, ...).
        company: Optional company name.
        phone: Optional phone number.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    company: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(Text, nullable=True)
