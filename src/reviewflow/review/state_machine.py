"""Approval and phase state machine for Reviewflow.

Each (project, phase) pair carries one approval record:

    pending ──approve──> approved            (terminal for the phase)
    pending <──────────> reverted_to_executor (reviewer revert / executor resubmit)

Independent executor and reviewer submission flags sit on top of the
status. Approving a phase completes its stage and either activates the
next stage or, when there is none, completes the project. Reverting
archives the live checklist as an iteration, forces the executor to
resubmit and bumps the stage's conflict counter.

All operations run inside the caller's transaction, so a multi-row step
such as approve either applies completely or not at all.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database.models.approval import ApprovalStatus, ChecklistApproval
from reviewflow.database.models.base import utcnow
from reviewflow.database.models.project import ProjectStatus
from reviewflow.database.models.stage import StageStatus
from reviewflow.database.queries import approval as approval_queries
from reviewflow.database.queries.checklist import get_checklist
from reviewflow.database.queries.project import set_project_status
from reviewflow.database.queries.stage import (
    get_stage_by_phase,
    increment_conflict_count,
    set_stage_status,
)
from reviewflow.errors import NotFoundError, RevertNotPermittedError
from reviewflow.logging import bind_review_context
from reviewflow.review.archiver import archive
from reviewflow.review.defects import accumulate_defects, should_accumulate
from reviewflow.review.documents import Role, dump_groups, load_groups, load_iterations
from reviewflow.review.validation import parse_phase, parse_project_id, parse_role

logger = structlog.get_logger(__name__)


@dataclass
class SubmitOutcome:
    """Result of a role submission.

    Attributes:
        approval: Approval record after the submission.
        defects_added: Defects accumulated by this submission (0 if none).
    """

    approval: ChecklistApproval
    defects_added: int = 0


@dataclass
class ApproveOutcome:
    """Result of a team-leader approval.

    Attributes:
        approval: Approval record after the decision.
        next_phase: Phase number activated, or None when the project completed.
        project_completed: Whether this approval completed the project.
    """

    approval: ChecklistApproval
    next_phase: int | None
    project_completed: bool


@dataclass
class RevertOutcome:
    """Result of a reviewer revert.

    Attributes:
        approval: Approval record after the revert.
        conflict_count: Stage conflict counter after the increment.
        iteration_number: Number of the iteration archived, or None when the
            phase had no checklist to archive.
    """

    approval: ChecklistApproval
    conflict_count: int
    iteration_number: int | None


class ApprovalStateMachine:
    """Drives approval status, submissions and phase advancement.

    Identifiers are validated on entry: a malformed project id or phase
    raises an InvalidArgumentError subclass before any storage access.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        """Initialize the state machine.

        Args:
            clock: Source of the instants recorded on records.
        """
        self.clock = clock
        self.logger = logger.bind(component="ApprovalStateMachine")

    async def request_approval(
        self,
        session: AsyncSession,
        project_id: Any,
        phase: Any,
        notes: str | None = None,
    ) -> ChecklistApproval:
        """Put a phase into pending with a fresh request time. No precondition."""
        project_uuid = parse_project_id(project_id)
        phase_number = parse_phase(phase)
        bind_review_context(str(project_uuid), phase_number)

        record = await approval_queries.upsert_approval(
            session,
            project_uuid,
            phase_number,
            status=ApprovalStatus.pending,
            requested_at=self.clock(),
            notes=notes or "",
        )
        self.logger.info("approval_requested", project_id=str(project_uuid), phase=phase_number)
        return record

    async def submit(
        self,
        session: AsyncSession,
        project_id: Any,
        phase: Any,
        role: Any,
    ) -> SubmitOutcome:
        """Record a role's submission and accumulate defects when it qualifies.

        A reviewer submission always accumulates. An executor submission
        accumulates only when the reviewer has already submitted this cycle.
        An executor submission following a revert starts a fresh review
        pass: the reviewer flag is cleared and the status returns to pending.

        Returns:
            SubmitOutcome with the stored record and the defects added.
        """
        project_uuid = parse_project_id(project_id)
        phase_number = parse_phase(phase)
        submit_role = parse_role(role)
        bind_review_context(str(project_uuid), phase_number)
        now = self.clock()

        existing = await approval_queries.get_approval(session, project_uuid, phase_number)
        was_reverted = (
            existing is not None and existing.status == ApprovalStatus.reverted_to_executor
        )
        reviewer_already_submitted = existing is not None and existing.reviewer_submitted

        defects_added = 0
        if should_accumulate(submit_role, reviewer_already_submitted):
            defects_added = await self._accumulate(session, project_uuid, phase_number)

        fields: dict[str, Any] = {
            f"{submit_role.value}_submitted": True,
            f"{submit_role.value}_submitted_at": now,
        }
        if submit_role is Role.EXECUTOR and was_reverted:
            fields["reviewer_submitted"] = False
            fields["reviewer_submitted_at"] = None
            fields["status"] = ApprovalStatus.pending

        record = await approval_queries.upsert_approval(
            session, project_uuid, phase_number, **fields
        )

        self.logger.info(
            "phase_submitted",
            project_id=str(project_uuid),
            phase=phase_number,
            role=submit_role.value,
            review_pass_reset=submit_role is Role.EXECUTOR and was_reverted,
            defects_added=defects_added,
        )
        return SubmitOutcome(approval=record, defects_added=defects_added)

    async def _accumulate(self, session: AsyncSession, project_id: Any, phase: int) -> int:
        stage = await get_stage_by_phase(session, project_id, phase)
        if stage is None:
            return 0
        checklist = await get_checklist(session, project_id, stage.id, for_update=True)
        if checklist is None:
            return 0

        groups = load_groups(checklist.groups)
        added = accumulate_defects(groups)
        checklist.groups = dump_groups(groups)
        await session.flush()

        self.logger.info(
            "defects_accumulated",
            project_id=str(project_id),
            phase=phase,
            defects_added=added,
        )
        return added

    async def approve(
        self,
        session: AsyncSession,
        project_id: Any,
        phase: Any,
        actor: str | None = None,
    ) -> ApproveOutcome:
        """Approve a phase and advance the project.

        The phase's stage becomes completed. If a stage for phase + 1 exists
        it becomes in_progress, otherwise the project becomes completed.

        Returns:
            ApproveOutcome describing where the project moved.
        """
        project_uuid = parse_project_id(project_id)
        phase_number = parse_phase(phase)
        bind_review_context(str(project_uuid), phase_number)
        now = self.clock()

        record = await approval_queries.upsert_approval(
            session,
            project_uuid,
            phase_number,
            status=ApprovalStatus.approved,
            decided_at=now,
            decided_by=actor,
        )

        await set_stage_status(session, project_uuid, phase_number, StageStatus.completed)

        next_stage = await get_stage_by_phase(session, project_uuid, phase_number + 1)
        if next_stage is not None:
            await set_stage_status(
                session, project_uuid, next_stage.phase_number, StageStatus.in_progress
            )
            outcome = ApproveOutcome(
                approval=record, next_phase=next_stage.phase_number, project_completed=False
            )
        else:
            await set_project_status(session, project_uuid, ProjectStatus.completed)
            outcome = ApproveOutcome(approval=record, next_phase=None, project_completed=True)

        self.logger.info(
            "phase_approved",
            project_id=str(project_uuid),
            phase=phase_number,
            decided_by=actor,
            next_phase=outcome.next_phase,
            project_completed=outcome.project_completed,
        )
        return outcome

    async def revert_to_executor(
        self,
        session: AsyncSession,
        project_id: Any,
        phase: Any,
        role: Any = Role.REVIEWER,
        notes: str | None = None,
        actor: str | None = None,
    ) -> RevertOutcome:
        """Send a phase back to the executor for another cycle.

        In order: the live checklist is archived as an iteration, the
        approval record is set to reverted_to_executor with the executor's
        submission cleared, and the stage's conflict counter is incremented.

        Raises:
            RevertNotPermittedError: If the caller is not the reviewer.
            NotFoundError: If the phase has no stage.
        """
        project_uuid = parse_project_id(project_id)
        phase_number = parse_phase(phase)
        if parse_role(role) is not Role.REVIEWER:
            raise RevertNotPermittedError()
        bind_review_context(str(project_uuid), phase_number)
        now = self.clock()

        stage = await get_stage_by_phase(session, project_uuid, phase_number)
        if stage is None:
            raise NotFoundError(
                f"Stage not found for project {project_uuid}, phase {phase_number}",
                project_id=str(project_uuid),
                phase=phase_number,
            )

        iteration_number: int | None = None
        checklist = await get_checklist(session, project_uuid, stage.id, for_update=True)
        if checklist is not None:
            existing = await approval_queries.get_approval(session, project_uuid, phase_number)
            iteration = archive(
                checklist,
                actor=actor,
                notes=notes,
                now=now,
                executor_submitted_at=existing.executor_submitted_at if existing else None,
                reviewer_submitted_at=existing.reviewer_submitted_at if existing else None,
            )
            iteration_number = iteration.iteration_number
            await session.flush()

        record = await approval_queries.upsert_approval(
            session,
            project_uuid,
            phase_number,
            status=ApprovalStatus.reverted_to_executor,
            decided_at=now,
            decided_by=actor,
            notes=notes or "",
            executor_submitted=False,
            executor_submitted_at=None,
        )

        conflict_count = await increment_conflict_count(session, stage.id)

        self.logger.info(
            "phase_reverted_to_executor",
            project_id=str(project_uuid),
            phase=phase_number,
            decided_by=actor,
            conflict_count=conflict_count,
            iteration_saved=iteration_number,
        )
        return RevertOutcome(
            approval=record, conflict_count=conflict_count, iteration_number=iteration_number
        )

    async def revert_by_leader(self, *args: Any, **kwargs: Any) -> None:
        """Retired team-leader revert; always refused.

        Raises:
            RevertNotPermittedError: Unconditionally.
        """
        self.logger.warning("leader_revert_refused")
        raise RevertNotPermittedError()

    async def get_approval_status(
        self,
        session: AsyncSession,
        project_id: Any,
        phase: Any = 1,
    ) -> ChecklistApproval | None:
        """Return the approval record of a phase, or None if none exists yet."""
        project_uuid = parse_project_id(project_id)
        phase_number = parse_phase(phase)
        return await approval_queries.get_approval(session, project_uuid, phase_number)

    async def get_revert_count(
        self,
        session: AsyncSession,
        project_id: Any,
        phase: Any = 1,
    ) -> int:
        """Return the explicit revert counter of a phase, 0 if no record exists."""
        record = await self.get_approval_status(session, project_id, phase)
        return record.revert_count if record is not None else 0

    async def increment_revert_count(
        self,
        session: AsyncSession,
        project_id: Any,
        phase: Any,
    ) -> int:
        """Atomically increment the explicit revert counter of a phase."""
        project_uuid = parse_project_id(project_id)
        phase_number = parse_phase(phase)
        count = await approval_queries.increment_revert_count(session, project_uuid, phase_number)
        self.logger.info(
            "revert_count_incremented",
            project_id=str(project_uuid),
            phase=phase_number,
            revert_count=count,
        )
        return count

    async def get_submission_status(
        self,
        session: AsyncSession,
        project_id: Any,
        phase: Any,
        role: Any,
    ) -> dict[str, Any]:
        """Return whether a role has submitted the phase this cycle.

        Returns:
            ``{"is_submitted": bool, "submitted_at": datetime | None}``.
        """
        submit_role = parse_role(role)
        record = await self.get_approval_status(session, project_id, phase)
        if record is None:
            return {"is_submitted": False, "submitted_at": None}
        return {
            "is_submitted": bool(getattr(record, f"{submit_role.value}_submitted")),
            "submitted_at": getattr(record, f"{submit_role.value}_submitted_at"),
        }

    async def get_iterations(
        self,
        session: AsyncSession,
        project_id: Any,
        phase: Any,
    ) -> dict[str, Any]:
        """Return the archived iterations of a phase.

        Returns:
            ``{"iterations": [...], "current_iteration": int,
            "total_iterations": int}``; an unstarted phase reads as no
            iterations and current iteration 1.
        """
        project_uuid = parse_project_id(project_id)
        phase_number = parse_phase(phase)

        stage = await get_stage_by_phase(session, project_uuid, phase_number)
        checklist = (
            await get_checklist(session, project_uuid, stage.id) if stage is not None else None
        )
        if checklist is None:
            return {"iterations": [], "current_iteration": 1, "total_iterations": 0}

        iterations = load_iterations(checklist.iterations)
        return {
            "iterations": [iteration.model_dump(mode="json") for iteration in iterations],
            "current_iteration": checklist.current_iteration,
            "total_iterations": len(iterations),
        }
