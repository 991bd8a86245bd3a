"""
Alembic Migration Environment (audit store)
============================================

What:  Points Alembic at the storegate audit store.
How:   The URL comes from storegate settings (DATABASE_URL), never from
       alembic.ini. Online runs go through an async engine and hand the
       connection to Alembic with run_sync(); offline runs only emit SQL.
Who:   `alembic upgrade head` before setting DATABASE_INSTALLED=true.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context

from storegate.config import settings
from storegate.database import Base

# Registers audit_log on Base.metadata for --autogenerate
from storegate.models.audit_log import AuditLog  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure(**kwargs) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout for review (`alembic upgrade head --sql`)."""
    _configure(
        url=settings.database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


def _run_sync(connection: Connection) -> None:
    _configure(connection=connection)


async def run_migrations_online() -> None:
    # One short-lived connection; the application's pool settings don't apply
    engine = create_async_engine(settings.database_url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_sync)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
