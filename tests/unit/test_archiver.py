"""Unit tests for the iteration archiver."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from reviewflow.database.models.checklist import ProjectChecklist
from reviewflow.review.archiver import archive
from reviewflow.review.documents import (
    ChecklistGroup,
    ChecklistQuestion,
    dump_groups,
    load_groups,
    load_iterations,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def checklist() -> ProjectChecklist:
    groups = [
        ChecklistGroup(
            id="g1",
            name="Drawings",
            defect_count=1,
            questions=[
                ChecklistQuestion(id="q1", text="Q1", executor_answer="Yes", reviewer_answer="No")
            ],
        )
    ]
    return ProjectChecklist(
        id=uuid.uuid4(),
        project_id=uuid.uuid4(),
        stage_id=uuid.uuid4(),
        phase_number=1,
        stage_name="Design",
        groups=dump_groups(groups),
        iterations=[],
        current_iteration=1,
    )


def test_archive_snapshots_current_state(checklist: ProjectChecklist) -> None:
    iteration = archive(checklist, "rev-1", "Fix Q1", NOW, executor_submitted_at=NOW)

    assert iteration.iteration_number == 1
    assert iteration.reverted_by == "rev-1"
    assert iteration.revert_notes == "Fix Q1"
    assert iteration.groups[0].questions[0].reviewer_answer == "No"
    assert iteration.groups[0].defect_count == 1
    assert checklist.current_iteration == 2
    assert len(checklist.iterations) == 1


def test_snapshot_is_independent_of_live_document(checklist: ProjectChecklist) -> None:
    """Test that later edits to the live groups never reach the archive."""
    archive(checklist, None, None, NOW)

    live = load_groups(checklist.groups)
    live[0].questions[0].executor_answer = "No"
    live[0].defect_count = 9
    checklist.groups = dump_groups(live)

    stored = load_iterations(checklist.iterations)[0]
    assert stored.groups[0].questions[0].executor_answer == "Yes"
    assert stored.groups[0].defect_count == 1
    assert stored.revert_notes == ""


def test_repeated_archives_are_numbered_in_order(checklist: ProjectChecklist) -> None:
    first_list = checklist.iterations
    for offset in range(3):
        archive(checklist, "rev-1", f"round {offset}", NOW + timedelta(minutes=offset))

    iterations = load_iterations(checklist.iterations)
    assert [it.iteration_number for it in iterations] == [1, 2, 3]
    assert [it.revert_notes for it in iterations] == ["round 0", "round 1", "round 2"]
    assert checklist.current_iteration == 4
    # A new list object is assigned every time
    assert checklist.iterations is not first_list
    assert first_list == []
