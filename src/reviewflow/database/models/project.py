"""Project model for Reviewflow.

Defines the Project table and ProjectStatus enum. A project moves from
pending to in_progress when it is started (which creates its stages from
the template) and to completed when its last phase is approved.
"""

from __future__ import annotations

import enum

from sqlalchemy import Enum, Text
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.database.models.base import Base, TimestampMixin


class ProjectStatus(enum.Enum):
    """Lifecycle status for a project.

    States:
        pending: Created, review pipeline not yet started.
        in_progress: Stages exist and a phase is being reviewed.
        completed: The final phase has been approved.
    """

    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"


class Project(TimestampMixin, Base):
    """A project whose deliverables go through the phased review.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        name: Human-readable project name.
        description: Optional free-text description.
        status: Current lifecycle status.
        created_by: Opaque actor id of the creator.
    """

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status"),
        default=ProjectStatus.pending,
        nullable=False,
    )
    created_by: Mapped[str | None] = mapped_column(Text, nullable=True)
