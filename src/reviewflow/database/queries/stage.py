"""Stage query functions for Reviewflow."""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database.models.stage import Stage, StageStatus, stage_key_for

logger = structlog.get_logger(__name__)


async def create_stage(
    session: AsyncSession,
    project_id: UUID,
    phase_number: int,
    name: str,
    status: StageStatus = StageStatus.pending,
) -> Stage:
    """Create a stage for one phase of a project.

    Args:
        session: Active async database session.
        project_id: UUID of the parent project.
        phase_number: 1-based phase ordinal.
        name: Display name.
        status: Initial status.

    Returns:
        The newly created Stage instance.
    """
    stage = Stage(
        project_id=project_id,
        phase_number=phase_number,
        stage_key=stage_key_for(phase_number),
        name=name,
        status=status,
        conflict_count=0,
    )
    session.add(stage)
    await session.flush()

    logger.info(
        "stage_created",
        stage_id=str(stage.id),
        project_id=str(project_id),
        phase=phase_number,
        status=status.value,
    )

    return stage


async def get_stage_by_phase(
    session: AsyncSession,
    project_id: UUID,
    phase_number: int,
) -> Stage | None:
    """Retrieve the stage of a project for a phase number, or None."""
    stmt = select(Stage).where(
        Stage.project_id == project_id,
        Stage.phase_number == phase_number,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_stages(
    session: AsyncSession,
    project_id: UUID,
) -> list[Stage]:
    """List a project's stages ordered by phase number."""
    stmt = (
        select(Stage)
        .where(Stage.project_id == project_id)
        .order_by(Stage.phase_number.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_stages(session: AsyncSession, project_id: UUID) -> int:
    """Count a project's stages."""
    stmt = select(func.count()).select_from(Stage).where(Stage.project_id == project_id)
    result = await session.execute(stmt)
    return int(result.scalar_one())


async def set_stage_status(
    session: AsyncSession,
    project_id: UUID,
    phase_number: int,
    status: StageStatus,
) -> bool:
    """Set the status of a project's stage.

    Returns:
        True if a stage row was updated, False if the phase has no stage.
    """
    stmt = (
        update(Stage)
        .where(Stage.project_id == project_id, Stage.phase_number == phase_number)
        .values(status=status)
    )
    result = await session.execute(stmt)
    return result.rowcount > 0


async def increment_conflict_count(session: AsyncSession, stage_id: UUID) -> int:
    """Atomically add one to a stage's conflict counter.

    Returns:
        The counter value after the increment.
    """
    stmt = (
        update(Stage)
        .where(Stage.id == stage_id)
        .values(conflict_count=Stage.conflict_count + 1)
        .returning(Stage.conflict_count)
    )
    result = await session.execute(stmt)
    return int(result.scalar_one())
