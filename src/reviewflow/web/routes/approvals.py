"""Approval endpoints for Reviewflow.

The reviewer compares answers and may revert a phase to the executor; the
team leader requests and grants approval. Team-leader reverts were
retired and the old endpoint now always answers 403.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from reviewflow.database.models.approval import ApprovalStatus
from reviewflow.logging import get_logger
from reviewflow.review import answers as answer_service
from reviewflow.review.documents import Role
from reviewflow.review.state_machine import ApprovalStateMachine
from reviewflow.web.dependencies import get_actor_id, get_session_factory, get_state_machine

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class ApprovalResponse(BaseModel):
    """Response schema for an approval record."""

    id: UUID
    project_id: UUID
    phase: int
    status: ApprovalStatus
    requested_at: Any
    executor_submitted: bool
    executor_submitted_at: Any
    reviewer_submitted: bool
    reviewer_submitted_at: Any
    revert_count: int
    decided_by: str | None
    decided_at: Any
    notes: str

    model_config = {"from_attributes": True}


class PhaseRequest(BaseModel):
    """Request body naming a phase, with optional notes."""

    phase: int | str = 1
    notes: str | None = None


class CompareResponse(BaseModel):
    """Executor/reviewer agreement on the questions both answered."""

    match: bool
    exec_count: int
    rev_count: int


class ApproveResponse(BaseModel):
    """Approval record plus where the project moved."""

    approval: ApprovalResponse
    next_phase: int | None
    project_completed: bool


class RevertResponse(BaseModel):
    """Approval record plus the stage counter and iteration saved by a revert."""

    approval: ApprovalResponse
    conflict_count: int
    iteration_saved: int | None


class RevertCountResponse(BaseModel):
    """Explicit revert counter of a phase."""

    revert_count: int


def create_approvals_router() -> APIRouter:
    """Create the approval router.

    Routes:
        GET /projects/{project_id}/approval/compare - Compare executor and reviewer
        POST /projects/{project_id}/approval/request - Request approval
        POST /projects/{project_id}/approval/approve - Approve and advance
        POST /projects/{project_id}/approval/revert - Retired, always 403
        POST /projects/{project_id}/approval/revert-to-executor - Reviewer revert
        GET /projects/{project_id}/approval/status - Approval record or null
        GET /projects/{project_id}/approval/revert-count - Revert counter
        POST /projects/{project_id}/approval/revert-count - Increment revert counter
    """
    router = APIRouter(prefix="/projects/{project_id}/approval", tags=["approvals"])

    @router.get("/compare", response_model=CompareResponse)
    async def compare(
        project_id: str,
        phase: str = "1",
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            return await answer_service.compare_answers(session, project_id, phase)

    @router.post("/request", response_model=ApprovalResponse)
    async def request_approval(
        project_id: str,
        body: PhaseRequest,
        machine: ApprovalStateMachine = Depends(get_state_machine),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ApprovalResponse:
        async with session_factory() as session, session.begin():
            record = await machine.request_approval(
                session, project_id, body.phase, notes=body.notes
            )
            response = ApprovalResponse.model_validate(record)
        return response

    @router.post("/approve", response_model=ApproveResponse)
    async def approve(
        project_id: str,
        body: PhaseRequest,
        actor_id: str | None = Depends(get_actor_id),  # noqa: B008
        machine: ApprovalStateMachine = Depends(get_state_machine),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ApproveResponse:
        async with session_factory() as session, session.begin():
            outcome = await machine.approve(session, project_id, body.phase, actor=actor_id)
            response = ApproveResponse(
                approval=ApprovalResponse.model_validate(outcome.approval),
                next_phase=outcome.next_phase,
                project_completed=outcome.project_completed,
            )
        return response

    @router.post("/revert")
    async def revert(
        project_id: str,
        machine: ApprovalStateMachine = Depends(get_state_machine),  # noqa: B008
    ) -> None:
        await machine.revert_by_leader(project_id)

    @router.post("/revert-to-executor", response_model=RevertResponse)
    async def revert_to_executor(
        project_id: str,
        body: PhaseRequest,
        actor_id: str | None = Depends(get_actor_id),  # noqa: B008
        machine: ApprovalStateMachine = Depends(get_state_machine),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> RevertResponse:
        async with session_factory() as session, session.begin():
            outcome = await machine.revert_to_executor(
                session,
                project_id,
                body.phase,
                role=Role.REVIEWER,
                notes=body.notes,
                actor=actor_id,
            )
            response = RevertResponse(
                approval=ApprovalResponse.model_validate(outcome.approval),
                conflict_count=outcome.conflict_count,
                iteration_saved=outcome.iteration_number,
            )
        return response

    @router.get("/status", response_model=ApprovalResponse | None)
    async def approval_status(
        project_id: str,
        phase: str = "1",
        machine: ApprovalStateMachine = Depends(get_state_machine),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ApprovalResponse | None:
        async with session_factory() as session:
            record = await machine.get_approval_status(session, project_id, phase)
        return ApprovalResponse.model_validate(record) if record is not None else None

    @router.get("/revert-count", response_model=RevertCountResponse)
    async def revert_count(
        project_id: str,
        phase: str = "1",
        machine: ApprovalStateMachine = Depends(get_state_machine),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, int]:
        async with session_factory() as session:
            count = await machine.get_revert_count(session, project_id, phase)
        return {"revert_count": count}

    @router.post("/revert-count", response_model=RevertCountResponse)
    async def increment_revert_count(
        project_id: str,
        body: PhaseRequest,
        machine: ApprovalStateMachine = Depends(get_state_machine),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, int]:
        async with session_factory() as session, session.begin():
            count = await machine.increment_revert_count(session, project_id, body.phase)
        return {"revert_count": count}

    return router
