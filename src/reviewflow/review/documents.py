"""Checklist document types for Reviewflow.

The live checklist of a stage is a two-level tree:

    ChecklistGroup
    ├── questions: [ChecklistQuestion]
    └── sections: [ChecklistSection]
                  └── questions: [ChecklistQuestion]

These Pydantic models are the in-memory form of the JSON stored on
ProjectChecklist.groups and ProjectChecklist.iterations. Executor-side and
reviewer-side fields of a question are independent; nothing in this module
ever copies one side onto the other.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Role(str, Enum):
    """Checklist roles that answer questions.

    Roles:
        EXECUTOR: Performs the work and answers first.
        REVIEWER: Cross-checks the executor's answers.
    """

    EXECUTOR = "executor"
    REVIEWER = "reviewer"


# Allowed answer values per role; None always clears an answer.
EXECUTOR_ANSWERS: tuple[str | None, ...] = ("Yes", "No", "NA", None)
REVIEWER_ANSWERS: tuple[str | None, ...] = ("Yes", "No", None)
REVIEWER_STATUSES: tuple[str | None, ...] = ("Approved", "Rejected", None)


def new_id() -> str:
    """Generate a stable document id for a group, section or question."""
    return uuid.uuid4().hex


class RoleActors(BaseModel):
    """Who last touched a question, per role."""

    executor: str | None = None
    reviewer: str | None = None


class RoleTimestamps(BaseModel):
    """When a question was last touched, per role."""

    executor: datetime | None = None
    reviewer: datetime | None = None


class ChecklistQuestion(BaseModel):
    """A single checklist question with both roles' answers.

    Attributes:
        id: Stable id assigned at materialization. None only for documents
            written before ids existed.
        text: Question text.
        executor_answer: "Yes", "No", "NA" or None.
        executor_remark: Executor's free-text remark.
        executor_images: Blob ids attached by the executor.
        reviewer_answer: "Yes", "No" or None.
        reviewer_status: "Approved", "Rejected" or None.
        reviewer_remark: Reviewer's free-text remark.
        reviewer_images: Blob ids attached by the reviewer.
        category_id: Shared defect category triage field.
        severity: Shared severity triage field.
        answered_by: Last actor per role.
        answered_at: Last touch time per role.
    """

    id: str | None = None
    text: str
    executor_answer: str | None = None
    executor_remark: str = ""
    executor_images: list[str] = Field(default_factory=list)
    reviewer_answer: str | None = None
    reviewer_status: str | None = None
    reviewer_remark: str = ""
    reviewer_images: list[str] = Field(default_factory=list)
    category_id: str = ""
    severity: str = ""
    answered_by: RoleActors = Field(default_factory=RoleActors)
    answered_at: RoleTimestamps = Field(default_factory=RoleTimestamps)

    def answer_for(self, role: Role) -> str | None:
        """Return the answer recorded by the given role."""
        if role is Role.EXECUTOR:
            return self.executor_answer
        return self.reviewer_answer


class ChecklistSection(BaseModel):
    """A named block of questions inside a group."""

    id: str | None = None
    name: str
    questions: list[ChecklistQuestion] = Field(default_factory=list)


class ChecklistGroup(BaseModel):
    """A top-level checklist group.

    Attributes:
        id: Stable group id.
        name: Group name.
        defect_count: Lifetime number of executor/reviewer disagreements,
            only ever increased by the defect accumulator.
        questions: Questions directly under the group.
        sections: Sections, each with its own questions.
    """

    id: str | None = None
    name: str
    defect_count: int = 0
    questions: list[ChecklistQuestion] = Field(default_factory=list)
    sections: list[ChecklistSection] = Field(default_factory=list)

    def all_questions(self) -> Iterator[ChecklistQuestion]:
        """Yield direct questions first, then questions of every section."""
        yield from self.questions
        for section in self.sections:
            yield from section.questions


class Iteration(BaseModel):
    """Frozen snapshot of a checklist taken when the reviewer reverts.

    Attributes:
        iteration_number: The cycle number this snapshot closes.
        groups: Deep copy of the groups at revert time.
        reverted_at: When the revert happened.
        reverted_by: Actor who reverted.
        revert_notes: Reviewer notes for the executor.
        executor_submitted_at: Executor submission time of the closed cycle.
        reviewer_submitted_at: Reviewer submission time of the closed cycle.
    """

    model_config = ConfigDict(frozen=True)

    iteration_number: int
    groups: list[ChecklistGroup]
    reverted_at: datetime
    reverted_by: str | None = None
    revert_notes: str = ""
    executor_submitted_at: datetime | None = None
    reviewer_submitted_at: datetime | None = None


_groups_adapter = TypeAdapter(list[ChecklistGroup])
_iterations_adapter = TypeAdapter(list[Iteration])


def load_groups(raw: list[dict[str, Any]] | None) -> list[ChecklistGroup]:
    """Parse stored group JSON into ChecklistGroup models."""
    return _groups_adapter.validate_python(raw or [])


def dump_groups(groups: list[ChecklistGroup]) -> list[dict[str, Any]]:
    """Serialize groups into JSON-compatible dicts for storage."""
    return [group.model_dump(mode="json") for group in groups]


def load_iterations(raw: list[dict[str, Any]] | None) -> list[Iteration]:
    """Parse stored iteration JSON into Iteration models."""
    return _iterations_adapter.validate_python(raw or [])


def clone_groups(groups: list[ChecklistGroup]) -> list[ChecklistGroup]:
    """Return a structural deep copy sharing no mutable state with the input."""
    return [group.model_copy(deep=True) for group in groups]


def count_questions(groups: list[ChecklistGroup]) -> int:
    """Count every question across groups and their sections."""
    return sum(1 for group in groups for _ in group.all_questions())
