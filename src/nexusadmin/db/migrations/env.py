"""Alembic environment for the NexusAdmin schema.

Learn: Migrations always run through the async engine, the same driver
the app uses (asyncpg in production, aiosqlite in tests). The target
database is picked in this order:

1. ``alembic -x database_url=...`` on the command line
2. ``config.attributes["database_url"]`` when driven from Python
3. NEXUSADMIN_DATABASE_URL (via Settings), which replaces alembic.ini

SQLite cannot ALTER most constraints in place, so autogenerate emits
batch operations there.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.ext.asyncio import async_engine_from_config

from nexusadmin.config import settings
from nexusadmin.db.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def database_url() -> str:
    x_args = context.get_x_argument(as_dictionary=True)
    return (
        x_args.get("database_url")
        or config.attributes.get("database_url")
        or settings.database_url
    )


def configure_context(**kwargs) -> None:
    url = make_url(database_url())
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=url.get_backend_name() == "sqlite",
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    configure_context(
        url=database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    configure_context(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = database_url()
    connectable = async_engine_from_config(
        section, prefix="sqlalchemy.", poolclass=pool.NullPool
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
