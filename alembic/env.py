"""Alembic environment for Geodesk.

Migrations run through SQLAlchemy's async engine (asyncpg in production)
against the URL resolved by ``geodesk.config.load_config``. The
``profiles`` table is owned by the identity system and is excluded from
autogenerate comparisons.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from geodesk.config import load_config
from geodesk.database.models import Base

EXTERNAL_TABLES = {"profiles"}

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Database URL comes from geodesk.toml or GEODESK_DATABASE__URL
geodesk_config = load_config()
config.set_main_option("sqlalchemy.url", geodesk_config.database.url)

target_metadata = Base.metadata


def include_object(
    obj: Any, name: str | None, type_: str, reflected: bool, compare_to: Any
) -> bool:
    """Skip tables Geodesk reads but does not own."""
    if type_ == "table" and name in EXTERNAL_TABLES:
        return False
    return True


def _configure(**kwargs: Any) -> None:
    context.configure(
        target_metadata=target_metadata,
        include_object=include_object,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL scripts without connecting to the database."""
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    _configure(connection=connection)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Connect with an async engine and apply pending migrations."""
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
