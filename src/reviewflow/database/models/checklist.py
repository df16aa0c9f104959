"""Project checklist model for Reviewflow.

A checklist is materialized once per stage from the template. Its groups
(with nested sections and questions) and its archived iterations are
stored as JSON documents; the structure is fixed at materialization and
only question-level fields change afterwards.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.database.models.base import Base, JSONDocument, TimestampMixin


class ProjectChecklist(TimestampMixin, Base):
    """The live checklist document of one project stage.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        project_id: Foreign key to the parent project.
        stage_id: Foreign key to the stage this checklist belongs to.
        phase_number: Phase number of the stage, denormalized for lookups.
        stage_name: Display name of the stage at materialization time.
        groups: Serialized ChecklistGroup documents.
        iterations: Serialized Iteration snapshots, append-only.
        current_iteration: Number of the executor/reviewer cycle in progress.
    """

    __tablename__ = "project_checklists"
    __table_args__ = (
        UniqueConstraint("project_id", "stage_id", name="uq_checklists_project_stage"),
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    stage_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("stages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    phase_number: Mapped[int] = mapped_column(Integer, nullable=False)
    stage_name: Mapped[str] = mapped_column(Text, nullable=False)
    groups: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument,
        default=list,
        nullable=False,
    )
    iterations: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument,
        default=list,
        nullable=False,
    )
    current_iteration: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
