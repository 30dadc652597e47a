"""Alembic migration environment for SQLAlchemy AsyncORM."""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection

from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging, unless the caller (the API
# startup hook) already configured logging.
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

from core.config import DATABASE_URL  # noqa: E402
from db.base import Base  # noqa: E402
import db.models  # noqa: E402,F401
from db.session import _make_async_url, connect_args  # noqa: E402

# override sqlalchemy URL: an explicit URL handed over by the caller wins,
# then the environment
database_url = config.attributes.get("database_url") or DATABASE_URL
if database_url:
    config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))

# ORM metadata so Alembic can autogenerate
target_metadata = Base.metadata


def run_migrations_offline():
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        include_schemas=True,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection):
    """Run migrations in 'online' mode using a synchronous connection."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        include_schemas=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online():
    """Run migrations in 'online' mode using an AsyncEngine."""
    raw_url = config.get_main_option("sqlalchemy.url")
    url = _make_async_url(raw_url)
    if url is None:
        raise RuntimeError(f"Unsupported database URL for migrations: {raw_url.split(':')[0]}")

    connectable = create_async_engine(url, poolclass=pool.NullPool, connect_args=connect_args())

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
