"""Project query functions for Reviewflow.

Provides async functions for creating, reading, updating, and deleting
Project records using the SQLAlchemy 2.0 select() API. Functions flush
but never commit; the caller owns the transaction.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database.models.approval import ChecklistApproval
from reviewflow.database.models.checklist import ProjectChecklist
from reviewflow.database.models.project import Project, ProjectStatus
from reviewflow.database.models.stage import Stage

logger = structlog.get_logger(__name__)


async def create_project(
    session: AsyncSession,
    name: str,
    description: str | None = None,
    created_by: str | None = None,
) -> Project:
    """Create a new project in pending status.

    Args:
        session: Active async database session.
        name: Human-readable project name.
        description: Optional description.
        created_by: Opaque actor id of the creator.

    Returns:
        The newly created Project instance.
    """
    project = Project(
        name=name,
        description=description,
        created_by=created_by,
        status=ProjectStatus.pending,
    )
    session.add(project)
    await session.flush()

    logger.info(
        "project_created",
        project_id=str(project.id),
        name=name,
        status=project.status.value,
    )

    return project


async def get_project(
    session: AsyncSession,
    project_id: UUID,
) -> Project | None:
    """Retrieve a project by ID.

    Returns:
        The Project instance if found, None otherwise.
    """
    stmt = select(Project).where(Project.id == project_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_projects(
    session: AsyncSession,
    status_filter: ProjectStatus | None = None,
) -> list[Project]:
    """List projects newest first, optionally filtered by status."""
    stmt = select(Project)

    if status_filter is not None:
        stmt = stmt.where(Project.status == status_filter)

    stmt = stmt.order_by(Project.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def set_project_status(
    session: AsyncSession,
    project_id: UUID,
    status: ProjectStatus,
) -> bool:
    """Set a project's status.

    Returns:
        True if a project row was updated.
    """
    stmt = update(Project).where(Project.id == project_id).values(status=status)
    result = await session.execute(stmt)
    updated = result.rowcount > 0

    if updated:
        logger.info("project_status_updated", project_id=str(project_id), status=status.value)

    return updated


async def delete_project(
    session: AsyncSession,
    project_id: UUID,
) -> bool:
    """Delete a project together with its stages, checklists and approvals.

    Dependent rows are deleted explicitly so the cascade also holds on
    backends that do not enforce foreign keys.

    Returns:
        True if the project was deleted, False if not found.
    """
    await session.execute(
        delete(ChecklistApproval).where(ChecklistApproval.project_id == project_id)
    )
    await session.execute(
        delete(ProjectChecklist).where(ProjectChecklist.project_id == project_id)
    )
    await session.execute(delete(Stage).where(Stage.project_id == project_id))
    result = await session.execute(delete(Project).where(Project.id == project_id))

    deleted = result.rowcount > 0

    if deleted:
        logger.info("project_deleted", project_id=str(project_id))
    else:
        logger.warning("project_not_found", project_id=str(project_id))

    return deleted
