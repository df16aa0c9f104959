"""Iteration archiver.

When the reviewer sends a phase back to the executor, the full checklist
state is frozen into an Iteration and appended to the checklist's history.
The history is append-only: entries are never edited, reordered or
removed, and each snapshot is a structural deep copy of the live groups.
"""

from __future__ import annotations

from datetime import datetime

from reviewflow.database.models.checklist import ProjectChecklist
from reviewflow.logging import get_logger
from reviewflow.review.documents import Iteration, clone_groups, load_groups

logger = get_logger(__name__)


def archive(
    checklist: ProjectChecklist,
    actor: str | None,
    notes: str | None,
    now: datetime,
    executor_submitted_at: datetime | None = None,
    reviewer_submitted_at: datetime | None = None,
) -> Iteration:
    """Snapshot the live groups and start the next cycle.

    The snapshot takes the checklist's current iteration number, which is
    then incremented on the live document.

    Args:
        checklist: Live checklist row, mutated in place.
        actor: Actor performing the revert.
        notes: Revert notes for the executor.
        now: Revert instant.
        executor_submitted_at: Executor submission time of the closing cycle.
        reviewer_submitted_at: Reviewer submission time of the closing cycle.

    Returns:
        The archived Iteration.
    """
    iteration_number = checklist.current_iteration or 1
    iteration = Iteration(
        iteration_number=iteration_number,
        groups=clone_groups(load_groups(checklist.groups)),
        reverted_at=now,
        reverted_by=actor,
        revert_notes=notes or "",
        executor_submitted_at=executor_submitted_at,
        reviewer_submitted_at=reviewer_submitted_at,
    )

    # New list object so the ORM sees the change; existing entries are reused as-is
    checklist.iterations = [*(checklist.iterations or []), iteration.model_dump(mode="json")]
    checklist.current_iteration = iteration_number + 1

    logger.info(
        "iteration_archived",
        checklist_id=str(checklist.id),
        iteration_number=iteration_number,
        total_iterations=len(checklist.iterations),
    )
    return iteration
