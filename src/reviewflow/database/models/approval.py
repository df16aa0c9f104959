"""Checklist approval model for Reviewflow.

One approval record exists per (project, phase). It carries the approval
status plus independent executor and reviewer submission flags.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.database.models.base import Base, TimestampMixin


class ApprovalStatus(enum.Enum):
    """Approval state of one phase.

    States:
        pending: Awaiting review or team-leader decision.
        approved: Team leader approved the phase (terminal).
        reverted_to_executor: Reviewer sent the work back for another cycle.
    """

    pending = "pending"
    approved = "approved"
    reverted_to_executor = "reverted_to_executor"


class ChecklistApproval(TimestampMixin, Base):
    """Approval and submission state of one project phase.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        project_id: Foreign key to the project.
        phase: Phase number.
        status: Current approval status.
        requested_at: When approval was last requested.
        executor_submitted: Whether the executor submitted this cycle.
        executor_submitted_at: When the executor last submitted.
        reviewer_submitted: Whether the reviewer submitted this cycle.
        reviewer_submitted_at: When the reviewer last submitted.
        revert_count: Explicit revert counter.
        decided_by: Actor of the last approve/revert decision.
        decided_at: When the last decision was made.
        notes: Notes attached to the last request or decision.
    """

    __tablename__ = "checklist_approvals"
    __table_args__ = (
        UniqueConstraint("project_id", "phase", name="uq_approvals_project_phase"),
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    phase: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[ApprovalStatus] = mapped_column(
        Enum(ApprovalStatus, name="approval_status"),
        default=ApprovalStatus.pending,
        nullable=False,
    )
    requested_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    executor_submitted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    executor_submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reviewer_submitted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reviewer_submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    revert_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    decided_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
