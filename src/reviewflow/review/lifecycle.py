"""Project lifecycle: starting a project and listing its phases.

Starting a pending project creates one stage per template phase and
materializes each stage's checklist. Phase 1 becomes the active phase;
every later phase waits for the approval of its predecessor.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database.models.project import Project, ProjectStatus
from reviewflow.database.models.stage import Stage, StageStatus
from reviewflow.database.queries.project import get_project
from reviewflow.database.queries.stage import count_stages, create_stage
from reviewflow.database.queries.stage import list_stages as query_stages
from reviewflow.database.queries.template import get_template
from reviewflow.errors import InvalidArgumentError, NotFoundError, TemplateMissingError
from reviewflow.review.materializer import ensure_checklist
from reviewflow.review.template import phase_keys
from reviewflow.review.validation import parse_project_id

logger = structlog.get_logger(__name__)


async def start_project(
    session: AsyncSession,
    project_id: Any,
    actor: str | None = None,
) -> Project:
    """Move a project from pending to in_progress and lay out its phases.

    Stages are only created when the project has none yet, so a project
    whose stages were created some other way keeps them.

    Args:
        session: Active async database session.
        project_id: Project id (UUID or string).
        actor: Actor starting the project.

    Returns:
        The started project.

    Raises:
        NotFoundError: If the project does not exist.
        InvalidArgumentError: If the project is not pending.
        TemplateMissingError: If stages must be created and no template exists.
    """
    project_uuid = parse_project_id(project_id)
    project = await get_project(session, project_uuid)
    if project is None:
        raise NotFoundError("Project not found", project_id=str(project_uuid))
    if project.status != ProjectStatus.pending:
        raise InvalidArgumentError(
            f"Only pending projects can be started; project is {project.status.value}",
            project_id=str(project_uuid),
        )

    created: list[Stage] = []
    if await count_stages(session, project_uuid) == 0:
        template = await get_template(session)
        if template is None:
            raise TemplateMissingError()

        stage_names = template.stage_names or {}
        for phase_number, stage_key in phase_keys(template.phases):
            stage = await create_stage(
                session,
                project_id=project_uuid,
                phase_number=phase_number,
                name=stage_names.get(stage_key) or f"Phase {phase_number}",
                status=StageStatus.in_progress if not created else StageStatus.pending,
            )
            await ensure_checklist(session, stage, template_phases=template.phases)
            created.append(stage)

    project.status = ProjectStatus.in_progress
    await session.flush()

    logger.info(
        "project_started",
        project_id=str(project_uuid),
        started_by=actor,
        stages_created=len(created),
    )
    return project


async def list_stages(session: AsyncSession, project_id: Any) -> list[Stage]:
    """List a project's stages in phase order."""
    return await query_stages(session, parse_project_id(project_id))
