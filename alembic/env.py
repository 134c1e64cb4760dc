"""
Alembic Environment Configuration for the Match Engine

Customized for:
- Async SQLAlchemy/SQLModel
- Environment variable for DATABASE_URL
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context

# Import settings and models
from match_engine.config.settings import settings
from match_engine.infrastructure.db.database import normalize_database_url
from sqlmodel import SQLModel

# Import all models to register them with SQLModel.metadata
from match_engine.infrastructure.db.models import (  # noqa: F401
    Program,
    StudentProfileRecord,
)

# Alembic Config object
config = context.config

# Interpret the config file for Python logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# SQLModel metadata for autogenerate
target_metadata = SQLModel.metadata


def get_url() -> str:
    """Get database URL from settings."""
    if not settings.database_url:
        raise ValueError("DATABASE_URL is required to run migrations")
    return normalize_database_url(settings.database_url)


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode.

    Generates SQL script without database connection.
    """
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    """Run migrations with connection."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations in 'online' mode with async engine."""
    connectable = create_async_engine(
        get_url(),
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
