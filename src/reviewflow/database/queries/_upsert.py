"""Dialect-aware insert helpers.

PostgreSQL and SQLite both support ``INSERT ... ON CONFLICT DO NOTHING``;
upserts are built from it followed by a plain UPDATE so that two callers
racing to create the same keyed row both end up reading the single row
that won.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession


async def insert_if_absent(
    session: AsyncSession,
    table: Table,
    index_elements: list[str],
    values: dict[str, Any],
) -> None:
    """Insert a row unless one with the same unique key already exists.

    Args:
        session: Active async database session.
        table: Target table.
        index_elements: Columns of the unique constraint that defines identity.
        values: Column values for the new row.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(table).values(**values)
    elif dialect == "sqlite":
        stmt = sqlite.insert(table).values(**values)
    else:
        try:
            async with session.begin_nested():
                await session.execute(table.insert().values(**values))
        except IntegrityError:
            # Row already present
            return
        return

    await session.execute(stmt.on_conflict_do_nothing(index_elements=index_elements))
