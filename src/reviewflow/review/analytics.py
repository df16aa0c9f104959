"""Defect rate reporting.

Group defect counters are cumulative, and so are the counters captured in
archived iterations. The defects found during one iteration are therefore
the difference between its cumulative total and the previous one's. The
live checklist is reported as the last, still open, iteration.

Category distribution is different: it looks at the questions that are
mismatched right now and groups them by their triage category.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database.models.checklist import ProjectChecklist
from reviewflow.database.queries.checklist import list_checklists
from reviewflow.review.defects import is_mismatch, total_defects
from reviewflow.review.documents import (
    ChecklistGroup,
    count_questions,
    load_groups,
    load_iterations,
)
from reviewflow.review.validation import parse_project_id


def defect_rate(defects: int, questions: int) -> float:
    """Defects per question as a percentage rounded to 2 decimals."""
    if questions <= 0:
        return 0.0
    return round(defects / questions * 100, 2)


def iteration_defect_rates(checklist: ProjectChecklist) -> list[dict[str, Any]]:
    """Per-iteration defect figures of one checklist, live cycle last.

    Returns:
        One dict per iteration with ``iteration_number``,
        ``cumulative_defects``, ``new_defects``, ``total_questions``,
        ``defect_rate`` and ``archived``.
    """
    rows: list[dict[str, Any]] = []
    previous = 0

    snapshots = [
        (iteration.iteration_number, iteration.groups, True)
        for iteration in load_iterations(checklist.iterations)
    ]
    snapshots.append((checklist.current_iteration, load_groups(checklist.groups), False))

    for iteration_number, groups, archived in snapshots:
        cumulative = total_defects(groups)
        new_defects = max(cumulative - previous, 0)
        questions = count_questions(groups)
        rows.append(
            {
                "iteration_number": iteration_number,
                "cumulative_defects": cumulative,
                "new_defects": new_defects,
                "total_questions": questions,
                "defect_rate": defect_rate(new_defects, questions),
                "archived": archived,
            }
        )
        previous = cumulative
    return rows


async def project_defect_rates(session: AsyncSession, project_id: Any) -> list[dict[str, Any]]:
    """Per-iteration defect figures for every phase of a project."""
    project_uuid = parse_project_id(project_id)
    return [
        {
            "phase": checklist.phase_number,
            "stage_name": checklist.stage_name,
            "iterations": iteration_defect_rates(checklist),
        }
        for checklist in await list_checklists(session, project_uuid)
    ]


async def overall_defect_rate(session: AsyncSession, project_id: Any) -> dict[str, Any]:
    """Project-wide defect rate from the live cumulative counters.

    Returns:
        ``{"total_questions", "total_defects", "defect_rate", "phases"}``
        where ``phases`` breaks the same figures down per phase.
    """
    project_uuid = parse_project_id(project_id)
    phases: list[dict[str, Any]] = []
    for checklist in await list_checklists(session, project_uuid):
        groups = load_groups(checklist.groups)
        questions = count_questions(groups)
        defects = total_defects(groups)
        phases.append(
            {
                "phase": checklist.phase_number,
                "total_questions": questions,
                "total_defects": defects,
                "defect_rate": defect_rate(defects, questions),
            }
        )

    total_questions = sum(phase["total_questions"] for phase in phases)
    total = sum(phase["total_defects"] for phase in phases)
    return {
        "total_questions": total_questions,
        "total_defects": total,
        "defect_rate": defect_rate(total, total_questions),
        "phases": phases,
    }


UNASSIGNED_CATEGORY = "Unassigned"


def group_defect_breakdown(groups: list[ChecklistGroup]) -> list[dict[str, Any]]:
    """Cumulative defect count, question total and rate for each group."""
    rows = []
    for group in groups:
        questions = sum(1 for _ in group.all_questions())
        rows.append(
            {
                "group_id": group.id,
                "group_name": group.name,
                "total_questions": questions,
                "defect_count": group.defect_count,
                "defect_rate": defect_rate(group.defect_count, questions),
            }
        )
    return rows


def category_counts(groups: list[ChecklistGroup]) -> dict[str, int]:
    """Count currently mismatched questions per category id."""
    counts: dict[str, int] = {}
    for group in groups:
        for question in group.all_questions():
            if is_mismatch(question):
                category = question.category_id or UNASSIGNED_CATEGORY
                counts[category] = counts.get(category, 0) + 1
    return counts


async def defects_per_group(session: AsyncSession, project_id: Any) -> list[dict[str, Any]]:
    """Per-group defect breakdown for every phase of a project."""
    project_uuid = parse_project_id(project_id)
    rows: list[dict[str, Any]] = []
    for checklist in await list_checklists(session, project_uuid):
        for row in group_defect_breakdown(load_groups(checklist.groups)):
            rows.append({"phase": checklist.phase_number, **row})
    return rows


async def category_distribution(session: AsyncSession, project_id: Any) -> dict[str, Any]:
    """How the project's current mismatches spread over defect categories.

    Questions without a category are reported under "Unassigned".

    Returns:
        ``{"total_defects", "distribution"}`` with one
        ``{"category_id", "count", "percentage"}`` entry per category,
        largest count first.
    """
    project_uuid = parse_project_id(project_id)
    counts: dict[str, int] = {}
    for checklist in await list_checklists(session, project_uuid):
        for category, count in category_counts(load_groups(checklist.groups)).items():
            counts[category] = counts.get(category, 0) + count

    total = sum(counts.values())
    distribution = [
        {
            "category_id": category,
            "count": count,
            "percentage": defect_rate(count, total),
        }
        for category, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]
    return {"total_defects": total, "distribution": distribution}


async def project_analysis(session: AsyncSession, project_id: Any) -> dict[str, Any]:
    """Overall figures plus the per-group and per-category breakdowns."""
    overall = await overall_defect_rate(session, project_id)
    return {
        "total_questions": overall["total_questions"],
        "total_defects": overall["total_defects"],
        "defect_rate": overall["defect_rate"],
        "defects_by_group": await defects_per_group(session, project_id),
        "category_distribution": await category_distribution(session, project_id),
    }
