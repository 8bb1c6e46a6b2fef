"""Database connection management for Geodesk.

This module provides factory functions for creating SQLAlchemy async engines
and session factories, configured from the application's DatabaseConfig,
plus the Database handle that bundles them.

The backing store guarantees atomicity per statement only as far as the
services are concerned: callers commit after every write and rely on
compensating writes, never on a transaction spanning several tables.

Example usage:
    >>> from geodesk.config import DatabaseConfig
    >>> from geodesk.database.connection import Database
    >>>
    >>> database = Database.from_config(DatabaseConfig())
    >>> async with database.session_factory() as session:
    ...     result = await session.execute(select(Project))
    >>> await database.dispose()
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from geodesk.config import DatabaseConfig


def get_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create an async SQLAlchemy engine from database configuration.

    SQLite URLs (used in tests and local tooling) skip the pool sizing
    arguments, which their pool classes do not accept.

    Args:
        config: Database configuration containing URL, pool settings,
                and SQL echo preference.

    Returns:
        Configured AsyncEngine instance.
    """
    if config.url.startswith("sqlite"):
        return create_async_engine(config.url, echo=config.echo)

    return create_async_engine(
        config.url,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        echo=config.echo,
    )


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the given engine.

    Sessions use expire_on_commit=False so that ORM objects stay readable
    after each per-step commit without triggering lazy loads.

    Args:
        engine: AsyncEngine to bind sessions to.

    Returns:
        Configured async_sessionmaker that produces AsyncSession instances.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@dataclass(frozen=True)
class Database:
    """Immutable handle on the engine and its session factory.

    Created once per process (by the application lifespan or the CLI) and
    passed to the components that need storage.

    Attributes:
        engine: Async engine owning the connection pool.
        session_factory: Factory producing AsyncSession instances.
    """

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> Database:
        """Build a handle from configuration."""
        engine = get_engine(config)
        return cls(engine=engine, session_factory=get_session_factory(engine))

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
