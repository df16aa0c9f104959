"""Answer ledger service: reading and writing checklist answers of a phase.

Read paths degrade gracefully: a phase whose stage does not exist yet, or
whose checklist cannot be materialized because no template is configured,
reads as an empty answer map. Write paths require the stage to exist.

None of these operations touch defect counters; defects are only
accumulated at submission events by the approval state machine.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database.models.base import utcnow
from reviewflow.database.models.checklist import ProjectChecklist
from reviewflow.database.queries.checklist import get_checklist
from reviewflow.database.queries.stage import get_stage_by_phase
from reviewflow.errors import InvalidArgumentError, NotFoundError, TemplateMissingError
from reviewflow.review.documents import (
    ChecklistGroup,
    Role,
    dump_groups,
    load_groups,
    load_iterations,
)
from reviewflow.review.images import ImageJanitor
from reviewflow.review.ledger import (
    AnswerUpdate,
    answer_view,
    find_group,
    find_question,
    locate_question,
    question_key,
    set_executor_answer,
    set_reviewer_answer,
)
from reviewflow.review.materializer import ensure_checklist
from reviewflow.review.validation import parse_phase, parse_project_id, parse_role

logger = structlog.get_logger(__name__)

_ANSWER_WRITERS = {
    Role.EXECUTOR: set_executor_answer,
    Role.REVIEWER: set_reviewer_answer,
}


def _coerce_update(key: str, raw: Any) -> AnswerUpdate | None:
    if isinstance(raw, AnswerUpdate):
        return raw
    if not isinstance(raw, Mapping):
        return None
    try:
        return AnswerUpdate.model_validate(dict(raw))
    except ValidationError as e:
        raise InvalidArgumentError(f"Invalid answer payload for {key!r}: {e}", key=key) from e


async def load_phase_checklist(
    session: AsyncSession,
    project_id: UUID,
    phase: int,
    for_update: bool = False,
) -> ProjectChecklist | None:
    """Return the checklist of a phase, materializing it when needed.

    Returns None when the phase has no stage or no template is configured.
    """
    stage = await get_stage_by_phase(session, project_id, phase)
    if stage is None:
        return None
    try:
        return await ensure_checklist(session, stage, for_update=for_update)
    except TemplateMissingError:
        logger.warning("checklist_unavailable", project_id=str(project_id), phase=phase)
        return None


async def get_answers(
    session: AsyncSession,
    project_id: Any,
    phase: Any,
    role: Any,
) -> dict[str, dict[str, Any]]:
    """Return one role's answers keyed by question id.

    Args:
        session: Active async database session.
        project_id: Project id (UUID or string).
        phase: Phase number (int or numeric string).
        role: "executor" or "reviewer".

    Returns:
        Mapping of question key to the role's answer record; empty when the
        phase has not started.

    Raises:
        InvalidArgumentError: For a malformed project id, phase or role.
    """
    project_uuid = parse_project_id(project_id)
    phase_number = parse_phase(phase)
    answer_role = parse_role(role)

    checklist = await load_phase_checklist(session, project_uuid, phase_number)
    if checklist is None:
        return {}

    answers: dict[str, dict[str, Any]] = {}
    for group in load_groups(checklist.groups):
        for question in group.all_questions():
            answers[question_key(question)] = answer_view(question, answer_role)
    return answers


async def save_answers(
    session: AsyncSession,
    project_id: Any,
    phase: Any,
    role: Any,
    answers: Mapping[str, Any],
    actor: str | None = None,
    janitor: ImageJanitor | None = None,
    now: datetime | None = None,
) -> dict[str, int]:
    """Apply a batch of partial answer writes for one role.

    Keys that match no question are skipped, as are entries whose value is
    not an object.

    Returns:
        ``{"saved_count": n, "total_attempted": m}``.

    Raises:
        InvalidArgumentError: For malformed identifiers or payloads.
        InvalidAnswerValueError: For an answer outside the role's enumeration.
        NotFoundError: If the phase has no stage.
        TemplateMissingError: If the checklist must be materialized and no
            template is configured.
    """
    project_uuid = parse_project_id(project_id)
    phase_number = parse_phase(phase)
    answer_role = parse_role(role)
    if not isinstance(answers, Mapping):
        raise InvalidArgumentError("Answers must be an object keyed by question id")

    stage = await get_stage_by_phase(session, project_uuid, phase_number)
    if stage is None:
        raise NotFoundError(
            "Stage not found for this phase", project_id=str(project_uuid), phase=phase_number
        )

    checklist = await ensure_checklist(session, stage, for_update=True)
    groups = load_groups(checklist.groups)
    timestamp = now or utcnow()

    saved_count = 0
    removed_images: list[str] = []
    for key, raw in answers.items():
        update = _coerce_update(key, raw)
        if update is None:
            continue
        question = locate_question(groups, key)
        if question is None:
            continue
        removed_images.extend(
            _ANSWER_WRITERS[answer_role](question, update, actor, timestamp)
        )
        saved_count += 1

    checklist.groups = dump_groups(groups)
    await session.flush()

    if janitor is not None and removed_images:
        janitor.schedule(removed_images)

    logger.info(
        "answers_saved",
        project_id=str(project_uuid),
        phase=phase_number,
        role=answer_role.value,
        saved_count=saved_count,
        total_attempted=len(answers),
        images_released=len(removed_images),
    )
    return {"saved_count": saved_count, "total_attempted": len(answers)}


async def update_question(
    session: AsyncSession,
    project_id: Any,
    phase: Any,
    group_id: str,
    question_id: str,
    role: Any,
    update: AnswerUpdate | Mapping[str, Any],
    actor: str | None = None,
    janitor: ImageJanitor | None = None,
    now: datetime | None = None,
) -> ChecklistGroup:
    """Write one role's side of a single question addressed by group and question id.

    Returns:
        The updated group.

    Raises:
        NotFoundError: If the stage, group or question does not exist.
    """
    project_uuid = parse_project_id(project_id)
    phase_number = parse_phase(phase)
    answer_role = parse_role(role)
    answer_update = _coerce_update(question_id, update)
    if answer_update is None:
        raise InvalidArgumentError("Answer payload must be an object")

    stage = await get_stage_by_phase(session, project_uuid, phase_number)
    if stage is None:
        raise NotFoundError(
            "Stage not found for this phase", project_id=str(project_uuid), phase=phase_number
        )

    checklist = await ensure_checklist(session, stage, for_update=True)
    groups = load_groups(checklist.groups)
    group = find_group(groups, group_id)
    if group is None:
        raise NotFoundError("Group not found", group_id=group_id)
    question, _ = find_question(group, question_id)
    if question is None:
        raise NotFoundError("Question not found", group_id=group_id, question_id=question_id)

    removed = _ANSWER_WRITERS[answer_role](question, answer_update, actor, now or utcnow())
    checklist.groups = dump_groups(groups)
    await session.flush()

    if janitor is not None and removed:
        janitor.schedule(removed)

    logger.info(
        "question_updated",
        project_id=str(project_uuid),
        phase=phase_number,
        role=answer_role.value,
        group_id=group_id,
        question_id=question_id,
    )
    return group


async def compare_answers(
    session: AsyncSession,
    project_id: Any,
    phase: Any = 1,
) -> dict[str, Any]:
    """Compare executor and reviewer answers of a phase.

    Only questions answered by both roles take part; with no such question
    the answers are considered matching.

    Returns:
        ``{"match": bool, "exec_count": int, "rev_count": int}``.
    """
    project_uuid = parse_project_id(project_id)
    phase_number = parse_phase(phase)

    stage = await get_stage_by_phase(session, project_uuid, phase_number)
    checklist = (
        await get_checklist(session, project_uuid, stage.id) if stage is not None else None
    )
    if checklist is None:
        return {"match": True, "exec_count": 0, "rev_count": 0}

    exec_count = 0
    rev_count = 0
    match = True
    for group in load_groups(checklist.groups):
        for question in group.all_questions():
            if question.executor_answer is not None:
                exec_count += 1
            if question.reviewer_answer is not None:
                rev_count += 1
            if (
                question.executor_answer is not None
                and question.reviewer_answer is not None
                and (question.executor_answer or None) != (question.reviewer_answer or None)
            ):
                match = False

    return {"match": match, "exec_count": exec_count, "rev_count": rev_count}


async def get_phase_checklist(
    session: AsyncSession,
    project_id: Any,
    phase: Any,
) -> dict[str, Any] | None:
    """Return the full checklist document of a phase, or None if it has not started."""
    project_uuid = parse_project_id(project_id)
    phase_number = parse_phase(phase)

    checklist = await load_phase_checklist(session, project_uuid, phase_number)
    if checklist is None:
        return None

    return {
        "id": str(checklist.id),
        "project_id": str(checklist.project_id),
        "stage_id": str(checklist.stage_id),
        "phase": checklist.phase_number,
        "stage_name": checklist.stage_name,
        "current_iteration": checklist.current_iteration,
        "total_iterations": len(load_iterations(checklist.iterations)),
        "groups": dump_groups(load_groups(checklist.groups)),
    }
