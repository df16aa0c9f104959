"""Answer ledger: per-question executor and reviewer answers.

Writes use partial-update semantics: only fields present in the incoming
AnswerUpdate are applied, an explicit null clears a field, and the
answering role's actor/timestamp audit pair is refreshed on every call
whether or not anything else changed.

Question lookup is by stable id. Documents materialized before ids were
assigned are still reachable through the literal-text fallback in
``find_question_by_legacy_text``, which is kept separate from the primary
lookup path.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from reviewflow.errors import InvalidAnswerValueError
from reviewflow.review.documents import (
    EXECUTOR_ANSWERS,
    REVIEWER_ANSWERS,
    REVIEWER_STATUSES,
    ChecklistGroup,
    ChecklistQuestion,
    ChecklistSection,
    Role,
)


class AnswerUpdate(BaseModel):
    """Partial answer write for one question.

    Only fields explicitly provided are applied (see ``model_fields_set``).

    Attributes:
        answer: Role answer; validated against the role's enumeration.
        status: Reviewer review status ("Approved", "Rejected", None).
        remark: Free-text remark; None clears it.
        images: Complete new list of attached blob ids; None clears it.
        category_id: Shared defect category; None clears it.
        severity: Shared severity; None clears it.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    answer: str | None = None
    status: str | None = None
    remark: str | None = None
    images: list[str] | None = None
    category_id: str | None = Field(
        default=None, validation_alias=AliasChoices("category_id", "categoryId")
    )
    severity: str | None = None


def _validate(role: Role, update: AnswerUpdate) -> None:
    provided = update.model_fields_set
    if role is Role.EXECUTOR:
        if "answer" in provided and update.answer not in EXECUTOR_ANSWERS:
            raise InvalidAnswerValueError("executor answer", update.answer, list(EXECUTOR_ANSWERS))
        if "status" in provided:
            raise InvalidAnswerValueError("executor status", update.status, [])
    else:
        if "answer" in provided and update.answer not in REVIEWER_ANSWERS:
            raise InvalidAnswerValueError("reviewer answer", update.answer, list(REVIEWER_ANSWERS))
        if "status" in provided and update.status not in REVIEWER_STATUSES:
            raise InvalidAnswerValueError("reviewer status", update.status, list(REVIEWER_STATUSES))


def apply_answer(
    question: ChecklistQuestion,
    role: Role,
    update: AnswerUpdate,
    actor: str | None,
    now: datetime,
) -> list[str]:
    """Apply a partial answer write for one role.

    Args:
        question: Question to mutate in place.
        role: Role performing the write.
        update: Fields to apply.
        actor: Opaque actor id recorded in the audit fields.
        now: Instant recorded in the audit fields.

    Returns:
        Blob ids that were attached for this role before the write and are
        no longer attached after it.

    Raises:
        InvalidAnswerValueError: If the answer or status is outside the
            role's enumeration.
    """
    _validate(role, update)
    provided = update.model_fields_set
    prefix = role.value
    previous_images = list(getattr(question, f"{prefix}_images"))

    if "answer" in provided:
        setattr(question, f"{prefix}_answer", update.answer)
    if "status" in provided:
        question.reviewer_status = update.status
    if "remark" in provided:
        setattr(question, f"{prefix}_remark", update.remark or "")
    if "images" in provided:
        setattr(question, f"{prefix}_images", list(update.images or []))
    if "category_id" in provided:
        question.category_id = update.category_id or ""
    if "severity" in provided:
        question.severity = update.severity or ""

    setattr(question.answered_by, prefix, actor)
    setattr(question.answered_at, prefix, now)

    current_images = set(getattr(question, f"{prefix}_images"))
    return [image_id for image_id in previous_images if image_id not in current_images]


def set_executor_answer(
    question: ChecklistQuestion,
    update: AnswerUpdate,
    actor: str | None,
    now: datetime,
) -> list[str]:
    """Apply an executor-side write. See ``apply_answer``."""
    return apply_answer(question, Role.EXECUTOR, update, actor, now)


def set_reviewer_answer(
    question: ChecklistQuestion,
    update: AnswerUpdate,
    actor: str | None,
    now: datetime,
) -> list[str]:
    """Apply a reviewer-side write. See ``apply_answer``."""
    return apply_answer(question, Role.REVIEWER, update, actor, now)


def find_question(
    group: ChecklistGroup, question_id: str
) -> tuple[ChecklistQuestion | None, ChecklistSection | None]:
    """Find a question of a group by id, falling back to its literal text.

    Returns:
        (question, section) where section is None for direct questions;
        (None, None) when nothing matches.
    """
    for question in group.questions:
        if question.id is not None and question.id == question_id:
            return question, None
    for section in group.sections:
        for question in section.questions:
            if question.id is not None and question.id == question_id:
                return question, section
    return find_question_by_legacy_text(group, question_id)


def find_question_by_legacy_text(
    group: ChecklistGroup, text: str
) -> tuple[ChecklistQuestion | None, ChecklistSection | None]:
    """Compatibility lookup by question text for documents without ids."""
    for question in group.questions:
        if question.text == text:
            return question, None
    for section in group.sections:
        for question in section.questions:
            if question.text == text:
                return question, section
    return None, None


def locate_question(groups: list[ChecklistGroup], key: str) -> ChecklistQuestion | None:
    """Resolve a question key across all groups.

    Ids are tried across every group before any text fallback so that a
    question whose text happens to equal another question's id can never
    shadow the id match.
    """
    for group in groups:
        for question in group.all_questions():
            if question.id is not None and question.id == key:
                return question
    for group in groups:
        question, _ = find_question_by_legacy_text(group, key)
        if question is not None:
            return question
    return None


def find_group(groups: list[ChecklistGroup], group_id: str) -> ChecklistGroup | None:
    """Return the group with the given id, or None."""
    for group in groups:
        if group.id is not None and group.id == group_id:
            return group
    return None


def question_key(question: ChecklistQuestion) -> str:
    """Key a question is exposed under: its id, or its text for legacy documents."""
    return question.id if question.id is not None else question.text


def answer_view(question: ChecklistQuestion, role: Role) -> dict[str, Any]:
    """Project one role's side of a question into a flat answer record."""
    prefix = role.value
    actor = getattr(question.answered_by, prefix)
    view: dict[str, Any] = {
        "answer": getattr(question, f"{prefix}_answer"),
        "remark": getattr(question, f"{prefix}_remark"),
        "images": list(getattr(question, f"{prefix}_images")),
        "category_id": question.category_id,
        "severity": question.severity,
        "answered_by": actor,
        "answered_at": getattr(question.answered_at, prefix),
    }
    if role is Role.REVIEWER:
        view["status"] = question.reviewer_status
    return view
