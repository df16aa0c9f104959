"""Checklist template definitions.

The template maps a stage key ("stage1", "stage2", ...) to the list of
group definitions a checklist for that phase is materialized from. Group,
section and question definitions accept both the current field names and
the older ``text``/``checkpoints`` spelling so that exported templates can
be loaded unchanged.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, model_validator

_STAGE_KEY_RE = re.compile(r"^stage(\d{1,2})$")


class TemplateQuestion(BaseModel):
    """A question definition; a bare string is accepted as its text."""

    text: str
    category_id: str = Field(
        default="", validation_alias=AliasChoices("category_id", "categoryId")
    )

    @model_validator(mode="before")
    @classmethod
    def _from_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"text": value}
        return value


class TemplateSection(BaseModel):
    """A section definition inside a group."""

    name: str = Field(validation_alias=AliasChoices("name", "text"))
    questions: list[TemplateQuestion] = Field(
        default_factory=list, validation_alias=AliasChoices("questions", "checkpoints")
    )


class TemplateGroup(BaseModel):
    """A top-level group definition."""

    name: str = Field(validation_alias=AliasChoices("name", "text"))
    questions: list[TemplateQuestion] = Field(
        default_factory=list, validation_alias=AliasChoices("questions", "checkpoints")
    )
    sections: list[TemplateSection] = Field(default_factory=list)


class DefectCategory(BaseModel):
    """A defect category that questions can be triaged into."""

    id: str
    name: str
    color: str = "#9e9e9e"


class TemplateDocument(BaseModel):
    """Full template payload as loaded from a file or an API request.

    Attributes:
        name: Template name.
        phases: Stage key to group definitions.
        stage_names: Stage key to display name.
        defect_categories: Category catalogue.
    """

    name: str = "Default Quality Review Template"
    phases: dict[str, list[TemplateGroup]] = Field(default_factory=dict)
    stage_names: dict[str, str] = Field(default_factory=dict)
    defect_categories: list[DefectCategory] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_stage_keys(self) -> "TemplateDocument":
        for key in self.phases:
            if _STAGE_KEY_RE.match(key) is None:
                raise ValueError(f"Invalid stage key {key!r}; expected 'stage<N>'")
        return self


def phase_keys(phases: dict[str, Any]) -> list[tuple[int, str]]:
    """Return (phase_number, stage_key) pairs ordered by phase number.

    Keys that are not of the form ``stage<N>`` with N >= 1 are ignored.
    """
    ordered: list[tuple[int, str]] = []
    for key in phases:
        match = _STAGE_KEY_RE.match(key)
        if match is not None and int(match.group(1)) >= 1:
            ordered.append((int(match.group(1)), key))
    return sorted(ordered)


def groups_for_stage(phases: dict[str, Any], stage_key: str) -> list[TemplateGroup]:
    """Parse the group definitions stored under one stage key."""
    return [TemplateGroup.model_validate(raw) for raw in phases.get(stage_key) or []]
