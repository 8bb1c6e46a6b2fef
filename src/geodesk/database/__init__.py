"""Database layer for Geodesk.

This module handles database connections and session management, and
exposes the ORM models.

Public API:
    Database: Immutable engine + session factory handle.
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    Base: SQLAlchemy declarative base for all models.
"""

from geodesk.database.connection import Database, get_engine, get_session_factory
from geodesk.database.models import (
    ActivityLogEntry,
    Base,
    MessageSource,
    Profile,
    Project,
    ProjectMedia,
    ProjectMessage,
    ProjectStatus,
    QuoteLineItem,
    RequestAttachment,
    TimestampMixin,
)

__all__ = [
    "Database",
    "get_engine",
    "get_session_factory",
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
