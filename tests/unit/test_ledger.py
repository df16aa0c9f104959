"""Unit tests for the answer ledger."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from reviewflow.errors import InvalidAnswerValueError
from reviewflow.review.documents import (
    ChecklistGroup,
    ChecklistQuestion,
    ChecklistSection,
    Role,
)
from reviewflow.review.ledger import (
    AnswerUpdate,
    answer_view,
    apply_answer,
    find_group,
    find_question,
    locate_question,
    question_key,
    set_executor_answer,
    set_reviewer_answer,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def group() -> ChecklistGroup:
    return ChecklistGroup(
        id="g1",
        name="Drawings",
        questions=[ChecklistQuestion(id="q1", text="Title block complete?")],
        sections=[
            ChecklistSection(
                id="s1",
                name="Dimensions",
                questions=[
                    ChecklistQuestion(id="q2", text="Units stated?"),
                    ChecklistQuestion(text="Legacy question"),
                ],
            )
        ],
    )


class TestApplyAnswer:
    """Tests for partial answer writes."""

    def test_only_provided_fields_change(self) -> None:
        question = ChecklistQuestion(
            id="q1", text="Q", executor_answer="Yes", executor_remark="checked"
        )

        set_executor_answer(question, AnswerUpdate(answer="No"), "alice", NOW)

        assert question.executor_answer == "No"
        assert question.executor_remark == "checked"

    def test_explicit_null_clears_field(self) -> None:
        question = ChecklistQuestion(id="q1", text="Q", executor_answer="Yes", executor_remark="x")

        set_executor_answer(question, AnswerUpdate(answer=None, remark=None), "alice", NOW)

        assert question.executor_answer is None
        assert question.executor_remark == ""

    def test_audit_fields_refreshed_on_empty_update(self) -> None:
        """Test that an update with no fields still stamps the actor and time."""
        question = ChecklistQuestion(id="q1", text="Q")

        set_reviewer_answer(question, AnswerUpdate(), "bob", NOW)

        assert question.answered_by.reviewer == "bob"
        assert question.answered_at.reviewer == NOW
        assert question.answered_by.executor is None

    def test_sides_are_independent(self) -> None:
        question = ChecklistQuestion(id="q1", text="Q", executor_answer="Yes")

        set_reviewer_answer(question, AnswerUpdate(answer="No", status="Rejected"), "bob", NOW)

        assert question.executor_answer == "Yes"
        assert question.reviewer_answer == "No"
        assert question.reviewer_status == "Rejected"

    def test_shared_triage_fields(self) -> None:
        question = ChecklistQuestion(id="q1", text="Q")

        set_reviewer_answer(
            question, AnswerUpdate.model_validate({"categoryId": "c1", "severity": "major"}), "bob", NOW
        )

        assert question.category_id == "c1"
        assert question.severity == "major"

    def test_returns_removed_images(self) -> None:
        question = ChecklistQuestion(id="q1", text="Q", executor_images=["a", "b", "c"])

        removed = apply_answer(question, Role.EXECUTOR, AnswerUpdate(images=["b"]), None, NOW)

        assert removed == ["a", "c"]
        assert question.executor_images == ["b"]

    def test_images_untouched_when_not_provided(self) -> None:
        question = ChecklistQuestion(id="q1", text="Q", reviewer_images=["a"])

        removed = apply_answer(question, Role.REVIEWER, AnswerUpdate(answer="Yes"), None, NOW)

        assert removed == []
        assert question.reviewer_images == ["a"]

    @pytest.mark.parametrize("answer", ["Yes", "No", "NA", None])
    def test_executor_answer_values(self, answer: str | None) -> None:
        question = ChecklistQuestion(id="q1", text="Q")
        set_executor_answer(question, AnswerUpdate(answer=answer), None, NOW)
        assert question.executor_answer == answer

    def test_reviewer_cannot_answer_na(self) -> None:
        question = ChecklistQuestion(id="q1", text="Q")
        with pytest.raises(InvalidAnswerValueError):
            set_reviewer_answer(question, AnswerUpdate(answer="NA"), None, NOW)
        assert question.reviewer_answer is None

    def test_executor_cannot_set_status(self) -> None:
        question = ChecklistQuestion(id="q1", text="Q")
        with pytest.raises(InvalidAnswerValueError):
            set_executor_answer(question, AnswerUpdate(status="Approved"), None, NOW)

    def test_invalid_reviewer_status(self) -> None:
        question = ChecklistQuestion(id="q1", text="Q")
        with pytest.raises(InvalidAnswerValueError):
            set_reviewer_answer(question, AnswerUpdate(status="Pending"), None, NOW)

    def test_unknown_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AnswerUpdate.model_validate({"answer": "Yes", "color": "red"})


class TestLookup:
    """Tests for question and group lookup."""

    def test_find_direct_question(self, group: ChecklistGroup) -> None:
        question, section = find_question(group, "q1")
        assert question is not None and question.text == "Title block complete?"
        assert section is None

    def test_find_section_question(self, group: ChecklistGroup) -> None:
        question, section = find_question(group, "q2")
        assert question is not None
        assert section is not None and section.id == "s1"

    def test_legacy_text_fallback(self, group: ChecklistGroup) -> None:
        question, _ = find_question(group, "Legacy question")
        assert question is not None and question.id is None

    def test_not_found(self, group: ChecklistGroup) -> None:
        assert find_question(group, "missing") == (None, None)

    def test_locate_prefers_id_over_text(self) -> None:
        """Test that an id match in any group wins over a text match."""
        shadow = ChecklistGroup(
            id="g0", name="A", questions=[ChecklistQuestion(id="x", text="q9")]
        )
        target = ChecklistGroup(
            id="g1", name="B", questions=[ChecklistQuestion(id="q9", text="Real")]
        )

        question = locate_question([shadow, target], "q9")

        assert question is not None and question.text == "Real"

    def test_find_group(self, group: ChecklistGroup) -> None:
        assert find_group([group], "g1") is group
        assert find_group([group], "g2") is None

    def test_question_key(self) -> None:
        assert question_key(ChecklistQuestion(id="q1", text="T")) == "q1"
        assert question_key(ChecklistQuestion(text="T")) == "T"


class TestAnswerView:
    """Tests for the per-role answer projection."""

    def test_executor_view(self) -> None:
        question = ChecklistQuestion(
            id="q1", text="Q", executor_answer="NA", executor_images=["i1"], reviewer_answer="No"
        )
        view = answer_view(question, Role.EXECUTOR)
        assert view["answer"] == "NA"
        assert view["images"] == ["i1"]
        assert "status" not in view

    def test_reviewer_view_includes_status(self) -> None:
        question = ChecklistQuestion(id="q1", text="Q", reviewer_status="Approved")
        view = answer_view(question, Role.REVIEWER)
        assert view["status"] == "Approved"
        assert view["answer"] is None
