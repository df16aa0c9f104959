"""Checklist materializer.

A stage's checklist is created from the template the first time it is
needed and is never restructured afterwards. Every group, section and
question receives a fresh stable id and empty answer fields.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database.models.checklist import ProjectChecklist
from reviewflow.database.models.stage import Stage
from reviewflow.database.queries.checklist import create_checklist_if_absent, get_checklist
from reviewflow.database.queries.template import get_template
from reviewflow.errors import TemplateMissingError
from reviewflow.review.documents import (
    ChecklistGroup,
    ChecklistQuestion,
    ChecklistSection,
    dump_groups,
    new_id,
)
from reviewflow.review.template import TemplateGroup, TemplateQuestion, groups_for_stage

logger = structlog.get_logger(__name__)


def _fresh_question(definition: TemplateQuestion) -> ChecklistQuestion:
    return ChecklistQuestion(
        id=new_id(),
        text=definition.text,
        category_id=definition.category_id,
    )


def map_template_to_groups(definitions: list[TemplateGroup]) -> list[ChecklistGroup]:
    """Build unanswered checklist groups from template group definitions.

    Args:
        definitions: Group definitions of one stage.

    Returns:
        New groups with fresh ids, empty answers and zero defect counters.
    """
    return [
        ChecklistGroup(
            id=new_id(),
            name=definition.name,
            defect_count=0,
            questions=[_fresh_question(q) for q in definition.questions],
            sections=[
                ChecklistSection(
                    id=new_id(),
                    name=section.name,
                    questions=[_fresh_question(q) for q in section.questions],
                )
                for section in definition.sections
            ],
        )
        for definition in definitions
    ]


async def ensure_checklist(
    session: AsyncSession,
    stage: Stage,
    for_update: bool = False,
    template_phases: dict[str, Any] | None = None,
) -> ProjectChecklist:
    """Return the checklist of a stage, materializing it on first access.

    Concurrent callers racing on the same stage all receive the single row
    that won the insert.

    Args:
        session: Active async database session.
        stage: Stage whose checklist is needed.
        for_update: Lock the returned row for the rest of the transaction.
        template_phases: Already-loaded template phases, skipping the lookup.

    Returns:
        The stage's ProjectChecklist.

    Raises:
        TemplateMissingError: If the checklist does not exist and no template
            is configured.
    """
    checklist = await get_checklist(session, stage.project_id, stage.id, for_update=for_update)
    if checklist is not None:
        return checklist

    if template_phases is None:
        template = await get_template(session)
        if template is None:
            raise TemplateMissingError()
        template_phases = template.phases

    groups = map_template_to_groups(groups_for_stage(template_phases, stage.stage_key))
    created = await create_checklist_if_absent(
        session,
        project_id=stage.project_id,
        stage_id=stage.id,
        phase_number=stage.phase_number,
        stage_name=stage.name,
        groups=dump_groups(groups),
    )

    checklist = await get_checklist(session, stage.project_id, stage.id, for_update=for_update)
    if checklist is None:
        raise RuntimeError(f"Checklist for stage {stage.id} missing after insert")

    if created:
        logger.info(
            "checklist_materialized",
            project_id=str(stage.project_id),
            stage_id=str(stage.id),
            phase=stage.phase_number,
            group_count=len(groups),
        )
    return checklist
