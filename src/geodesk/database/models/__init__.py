"""SQLAlchemy ORM models for Geodesk.

This module defines the database schema: projects, quote line items, the
activity log, project messages, media/attachment registries, and the
read-only profiles table.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from geodesk.database.models.activity import ActivityLogEntry
from geodesk.database.models.base import Base, TimestampMixin
from geodesk.database.models.line_item import QuoteLineItem
from geodesk.database.models.media import ProjectMedia, RequestAttachment
from geodesk.database.models.message import MessageSource, ProjectMessage
from geodesk.database.models.profile import Profile
from geodesk.database.models.project import Project, ProjectStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "Project",
    "ProjectStatus",
    "QuoteLineItem",
    "ActivityLogEntry",
    "ProjectMessage",
    "MessageSource",
    "ProjectMedia",
    "RequestAttachment",
    "Profile",
]
