"""Media and attachment registry models for Geodesk.

Files live in object storage; these tables only register pointers to
previously uploaded objects. Media are staff/client deliverables shown on
the project; attachments are documents the client supplied with the request.
"""

from __future__ import annotations

import uuid

from sqlalchemy import BigInteger, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from geodesk.database.models.base import Base, TimestampMixin


class ProjectMedia(TimestampMixin, Base):
    """A registered media object.

    Attributes:
        project_id: Owning project.
        file_path: Object key inside the media bucket.
        file_name: Original file name.
        file_size: Size in bytes, if known.
        content_type: MIME type, if known.
        sort_order: Display position.
    """

    __tablename__ = "project_media"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        index=True,
    )
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    content_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class RequestAttachment(TimestampMixin, Base):
    """A document attached by the client to the original request."""

    __tablename__ = "request_attachments"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        index=True,
    )
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    content_type: Mapped[str | None] = mapped_column(Text, nullable=True)
