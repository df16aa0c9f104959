"""Alembic environment for the Reviewflow schema.

The database URL comes from the Reviewflow configuration rather than
alembic.ini. A specific config file can be selected with
``alembic -x config=path/to/reviewflow.toml upgrade head``; otherwise the
usual search locations and REVIEWFLOW_* environment variables apply.

Online migrations run through the async engine (asyncpg in production).
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from reviewflow.config import load_config
from reviewflow.database.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

_config_arg = context.get_x_argument(as_dictionary=True).get("config")
reviewflow_config = load_config(Path(_config_arg) if _config_arg else None)
config.set_main_option("sqlalchemy.url", reviewflow_config.database.url)

target_metadata = Base.metadata


def _configure_kwargs() -> dict[str, object]:
    # JSON document columns and enum widths should be diffed by autogenerate
    return {"target_metadata": target_metadata, "compare_type": True}


def run_migrations_offline() -> None:
    """Emit the migration SQL as a script instead of executing it."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(),
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, **_configure_kwargs())

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Connect with a throwaway async engine and apply pending migrations."""
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    try:
        async with connectable.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
