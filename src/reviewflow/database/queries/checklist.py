"""Project checklist query functions for Reviewflow.

Checklists are read-modify-written as whole documents. Callers that intend
to write pass ``for_update=True`` so the row is locked for the rest of the
transaction on backends that support ``SELECT ... FOR UPDATE``.
"""

from __future__ import annotations

import uuid
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database.models.base import utcnow
from reviewflow.database.models.checklist import ProjectChecklist
from reviewflow.database.queries._upsert import insert_if_absent

logger = structlog.get_logger(__name__)


async def get_checklist(
    session: AsyncSession,
    project_id: UUID,
    stage_id: UUID,
    for_update: bool = False,
) -> ProjectChecklist | None:
    """Retrieve the checklist of a project stage.

    Args:
        session: Active async database session.
        project_id: UUID of the project.
        stage_id: UUID of the stage.
        for_update: Lock the row for the rest of the transaction.

    Returns:
        The ProjectChecklist if it exists, None otherwise.
    """
    stmt = select(ProjectChecklist).where(
        ProjectChecklist.project_id == project_id,
        ProjectChecklist.stage_id == stage_id,
    )
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_checklist_if_absent(
    session: AsyncSession,
    project_id: UUID,
    stage_id: UUID,
    phase_number: int,
    stage_name: str,
    groups: list[dict[str, Any]],
) -> bool:
    """Insert a checklist for a stage unless one already exists.

    Relies on the (project_id, stage_id) unique constraint, so concurrent
    callers never produce two checklists for the same stage.

    Returns:
        True if this call inserted the row.
    """
    checklist_id = uuid.uuid4()
    now = utcnow()
    await insert_if_absent(
        session,
        ProjectChecklist.__table__,
        index_elements=["project_id", "stage_id"],
        values={
            "id": checklist_id,
            "project_id": project_id,
            "stage_id": stage_id,
            "phase_number": phase_number,
            "stage_name": stage_name,
            "groups": groups,
            "iterations": [],
            "current_iteration": 1,
            "created_at": now,
            "updated_at": now,
        },
    )
    stored = await get_checklist(session, project_id, stage_id)
    return stored is not None and stored.id == checklist_id


async def list_checklists(
    session: AsyncSession,
    project_id: UUID,
) -> list[ProjectChecklist]:
    """List a project's checklists ordered by phase number."""
    stmt = (
        select(ProjectChecklist)
        .where(ProjectChecklist.project_id == project_id)
        .order_by(ProjectChecklist.phase_number.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
