"""Unit tests for checklist document types."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from reviewflow.review.documents import (
    ChecklistGroup,
    ChecklistQuestion,
    ChecklistSection,
    Iteration,
    Role,
    clone_groups,
    count_questions,
    dump_groups,
    load_groups,
    load_iterations,
)


@pytest.fixture
def groups() -> list[ChecklistGroup]:
    return [
        ChecklistGroup(
            id="g1",
            name="Drawings",
            questions=[ChecklistQuestion(id="q1", text="Q1", executor_images=["i1"])],
            sections=[
                ChecklistSection(
                    id="s1",
                    name="Dimensions",
                    questions=[ChecklistQuestion(id="q2", text="Q2")],
                )
            ],
        )
    ]


def test_all_questions_order(groups: list[ChecklistGroup]) -> None:
    assert [q.id for q in groups[0].all_questions()] == ["q1", "q2"]
    assert count_questions(groups) == 2


def test_dump_and_load_preserve_content(groups: list[ChecklistGroup]) -> None:
    groups[0].questions[0].answered_at.executor = datetime(2026, 1, 2, tzinfo=timezone.utc)

    raw = dump_groups(groups)
    assert raw[0]["questions"][0]["answered_at"]["executor"].startswith("2026-01-02")

    assert load_groups(raw) == groups


def test_load_groups_tolerates_missing_fields() -> None:
    """Test that stored documents without newer fields still load."""
    loaded = load_groups([{"name": "Old", "questions": [{"text": "Q"}]}])
    assert loaded[0].id is None
    assert loaded[0].defect_count == 0
    assert loaded[0].questions[0].executor_images == []


def test_load_none_is_empty() -> None:
    assert load_groups(None) == []
    assert load_iterations(None) == []


def test_clone_groups_is_deep(groups: list[ChecklistGroup]) -> None:
    copy = clone_groups(groups)
    copy[0].questions[0].executor_images.append("i2")
    copy[0].sections[0].questions[0].reviewer_answer = "No"

    assert groups[0].questions[0].executor_images == ["i1"]
    assert groups[0].sections[0].questions[0].reviewer_answer is None


def test_iteration_is_frozen(groups: list[ChecklistGroup]) -> None:
    iteration = Iteration(
        iteration_number=1, groups=groups, reverted_at=datetime(2026, 1, 2, tzinfo=timezone.utc)
    )
    with pytest.raises(ValidationError):
        iteration.iteration_number = 2


def test_answer_for() -> None:
    question = ChecklistQuestion(text="Q", executor_answer="NA", reviewer_answer="Yes")
    assert question.answer_for(Role.EXECUTOR) == "NA"
    assert question.answer_for(Role.REVIEWER) == "Yes"
