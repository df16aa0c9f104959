"""Defect accumulator.

A question is a mismatch when both the executor and the reviewer have a
non-empty answer and the two differ. Any unequal pair counts, including
"NA" against "Yes".

Group defect counters are cumulative: ``accumulate_defects`` adds the
current mismatch count of each group to its stored counter and is invoked
once per qualifying submission event. Counters are never recomputed from
scratch, so a disagreement observed once stays counted even if the
answers are later brought into agreement.
"""

from __future__ import annotations

from reviewflow.review.documents import ChecklistGroup, ChecklistQuestion, Role


def is_mismatch(question: ChecklistQuestion) -> bool:
    """Return True when both sides answered and the answers differ."""
    executor = question.executor_answer
    reviewer = question.reviewer_answer
    return bool(executor) and bool(reviewer) and executor != reviewer


def current_mismatch_count(group: ChecklistGroup) -> int:
    """Count mismatched questions in a group, sections included."""
    return sum(1 for question in group.all_questions() if is_mismatch(question))


def accumulate_defects(groups: list[ChecklistGroup]) -> int:
    """Add every group's current mismatch count to its defect counter.

    Args:
        groups: Live checklist groups, mutated in place.

    Returns:
        Total number of defects added across all groups.
    """
    total_new_defects = 0
    for group in groups:
        mismatches = current_mismatch_count(group)
        group.defect_count = (group.defect_count or 0) + mismatches
        total_new_defects += mismatches
    return total_new_defects


def should_accumulate(role: Role, reviewer_already_submitted: bool) -> bool:
    """Decide whether a submission event counts defects.

    Reviewer submissions always count. Executor submissions count only
    once the reviewer has submitted, otherwise the same disagreement would
    be counted when the executor answers first and again when the
    reviewer submits.
    """
    if role is Role.REVIEWER:
        return True
    return reviewer_already_submitted


def total_defects(groups: list[ChecklistGroup]) -> int:
    """Sum of the cumulative defect counters of all groups."""
    return sum(group.defect_count or 0 for group in groups)
