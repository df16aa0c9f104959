"""Stage model for Reviewflow.

A stage is one ordered phase of a project's review pipeline. The phase
number is stored explicitly; the stage key ("stage3") and display name are
carried alongside it and never parsed back into a number.
"""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import Enum, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.database.models.base import Base, TimestampMixin


class StageStatus(enum.Enum):
    """Lifecycle status for a stage.

    States:
        pending: Not yet reached.
        in_progress: The phase currently under review.
        completed: Approved by the team leader.
    """

    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"


def stage_key_for(phase_number: int) -> str:
    """Return the template key for a phase number (3 -> "stage3")."""
    return f"stage{phase_number}"


class Stage(TimestampMixin, Base):
    """One phase of a project's review pipeline.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        project_id: Foreign key to the parent project.
        phase_number: 1-based ordinal of the phase.
        stage_key: Template key of the phase ("stage1", "stage2", ...).
        name: Display name.
        status: Current lifecycle status.
        conflict_count: Number of times the phase was reverted to the executor.
    """

    __tablename__ = "stages"
    __table_args__ = (
        UniqueConstraint("project_id", "phase_number", name="uq_stages_project_phase"),
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    phase_number: Mapped[int] = mapped_column(Integer, nullable=False)
    stage_key: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[StageStatus] = mapped_column(
        Enum(StageStatus, name="stage_status"),
        default=StageStatus.pending,
        nullable=False,
    )
    conflict_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
