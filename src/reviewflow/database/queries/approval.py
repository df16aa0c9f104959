"""Checklist approval query functions for Reviewflow.

Approval records are keyed by (project_id, phase) and upserted: the row is
created on first touch and then updated field by field. Counters are
incremented with SQL expressions so concurrent requests cannot lose
updates.
"""

from __future__ import annotations

import uuid
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database.models.approval import ApprovalStatus, ChecklistApproval
from reviewflow.database.models.base import utcnow
from reviewflow.database.queries._upsert import insert_if_absent

logger = structlog.get_logger(__name__)


async def get_approval(
    session: AsyncSession,
    project_id: UUID,
    phase: int,
) -> ChecklistApproval | None:
    """Retrieve the approval record of a project phase, or None."""
    stmt = (
        select(ChecklistApproval)
        .where(ChecklistApproval.project_id == project_id, ChecklistApproval.phase == phase)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _ensure_approval_row(session: AsyncSession, project_id: UUID, phase: int) -> None:
    now = utcnow()
    await insert_if_absent(
        session,
        ChecklistApproval.__table__,
        index_elements=["project_id", "phase"],
        values={
            "id": uuid.uuid4(),
            "project_id": project_id,
            "phase": phase,
            "status": ApprovalStatus.pending,
            "executor_submitted": False,
            "reviewer_submitted": False,
            "revert_count": 0,
            "notes": "",
            "created_at": now,
            "updated_at": now,
        },
    )


async def upsert_approval(
    session: AsyncSession,
    project_id: UUID,
    phase: int,
    **fields: Any,
) -> ChecklistApproval:
    """Create the approval record if needed, then set the given fields.

    Args:
        session: Active async database session.
        project_id: UUID of the project.
        phase: Phase number.
        **fields: Column names and values to set.

    Returns:
        The approval record as stored after the update.
    """
    await _ensure_approval_row(session, project_id, phase)

    if fields:
        stmt = (
            update(ChecklistApproval)
            .where(ChecklistApproval.project_id == project_id, ChecklistApproval.phase == phase)
            .values(**fields)
        )
        await session.execute(stmt)

    record = await get_approval(session, project_id, phase)
    if record is None:
        raise RuntimeError(f"Approval row for project {project_id} phase {phase} vanished")

    logger.debug(
        "approval_upserted",
        project_id=str(project_id),
        phase=phase,
        fields_updated=list(fields.keys()),
    )
    return record


async def increment_revert_count(
    session: AsyncSession,
    project_id: UUID,
    phase: int,
) -> int:
    """Atomically add one to the phase's revert counter, creating the record if needed.

    Returns:
        The counter value after the increment.
    """
    await _ensure_approval_row(session, project_id, phase)
    stmt = (
        update(ChecklistApproval)
        .where(ChecklistApproval.project_id == project_id, ChecklistApproval.phase == phase)
        .values(revert_count=ChecklistApproval.revert_count + 1)
        .returning(ChecklistApproval.revert_count)
    )
    result = await session.execute(stmt)
    return int(result.scalar_one())
