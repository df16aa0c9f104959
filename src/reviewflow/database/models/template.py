"""Checklist template model for Reviewflow.

A single template row holds the checklist definition for every phase,
keyed by stage key ("stage1", "stage2", ...), plus display names and the
defect category catalogue.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.database.models.base import Base, JSONDocument, TimestampMixin

DEFAULT_TEMPLATE_NAME = "Default Quality Review Template"


class ChecklistTemplate(TimestampMixin, Base):
    """The global checklist template.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        name: Template name.
        phases: Mapping of stage key to a list of group definitions.
        stage_names: Mapping of stage key to display name.
        defect_categories: List of {id, name, color} category definitions.
        modified_by: Actor of the last modification.
    """

    __tablename__ = "templates"

    name: Mapped[str] = mapped_column(Text, nullable=False, default=DEFAULT_TEMPLATE_NAME)
    phases: Mapped[dict[str, Any]] = mapped_column(JSONDocument, default=dict, nullable=False)
    stage_names: Mapped[dict[str, str]] = mapped_column(
        JSONDocument, default=dict, nullable=False
    )
    defect_categories: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument, default=list, nullable=False
    )
    modified_by: Mapped[str | None] = mapped_column(Text, nullable=True)
