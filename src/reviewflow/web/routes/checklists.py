"""Checklist answer endpoints for Reviewflow.

Executors and reviewers read and write their side of a phase's checklist
here and submit it when done. Answer keys are question ids; checklists
created before ids existed are still addressable by question text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from reviewflow.errors import NotFoundError
from reviewflow.logging import get_logger
from reviewflow.review import answers as answer_service
from reviewflow.review.images import ImageJanitor
from reviewflow.review.state_machine import ApprovalStateMachine
from reviewflow.web.dependencies import (
    get_actor_id,
    get_janitor,
    get_session_factory,
    get_state_machine,
)
from reviewflow.web.routes.approvals import ApprovalResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class SaveAnswersRequest(BaseModel):
    """Batch answer write for one role.

    Attributes:
        phase: Phase number
        role: "executor" or "reviewer"
        answers: Question key to partial answer object
    """

    phase: int | str | None = None
    role: str | None = None
    answers: dict[str, Any] = Field(default_factory=dict)


class SaveAnswersResponse(BaseModel):
    """Outcome of a batch answer write."""

    saved_count: int
    total_attempted: int


class SubmitRequest(BaseModel):
    """Submission of a phase by one role."""

    phase: int | str | None = None
    role: str | None = None


class SubmitResponse(BaseModel):
    """Approval record after a submission plus the defects it added."""

    approval: ApprovalResponse
    defects_added: int


class SubmissionStatusResponse(BaseModel):
    """Whether a role has submitted the current cycle."""

    is_submitted: bool
    submitted_at: Any


def create_checklists_router() -> APIRouter:
    """Create the checklist router.

    Routes:
        GET /projects/{project_id}/checklist-answers - One role's answers
        PUT /projects/{project_id}/checklist-answers - Batch answer write
        POST /projects/{project_id}/checklist-answers/submit - Submit a phase
        GET /projects/{project_id}/checklist-answers/submission-status - Submission flag
        GET /projects/{project_id}/stages/{phase}/checklist - Full checklist document
        PATCH /projects/{project_id}/stages/{phase}/checklist/groups/{group_id}/questions/{question_id}/{role}
            - Single question write
        GET /projects/{project_id}/stages/{phase}/iterations - Archived iterations
    """
    router = APIRouter(prefix="/projects/{project_id}", tags=["checklists"])

    @router.get("/checklist-answers")
    async def get_answers(
        project_id: str,
        phase: str | None = None,
        role: str | None = None,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        # Reads can materialize the checklist, so they run in a transaction too
        async with session_factory() as session, session.begin():
            return await answer_service.get_answers(session, project_id, phase, role)

    @router.put("/checklist-answers", response_model=SaveAnswersResponse)
    async def save_answers(
        project_id: str,
        body: SaveAnswersRequest,
        actor_id: str | None = Depends(get_actor_id),  # noqa: B008
        janitor: ImageJanitor | None = Depends(get_janitor),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, int]:
        async with session_factory() as session, session.begin():
            result = await answer_service.save_answers(
                session,
                project_id,
                body.phase,
                body.role,
                body.answers,
                actor=actor_id,
                janitor=janitor,
            )
        return result

    @router.post("/checklist-answers/submit", response_model=SubmitResponse)
    async def submit(
        project_id: str,
        body: SubmitRequest,
        machine: ApprovalStateMachine = Depends(get_state_machine),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> SubmitResponse:
        async with session_factory() as session, session.begin():
            outcome = await machine.submit(session, project_id, body.phase, body.role)
            response = SubmitResponse(
                approval=ApprovalResponse.model_validate(outcome.approval),
                defects_added=outcome.defects_added,
            )
        return response

    @router.get("/checklist-answers/submission-status", response_model=SubmissionStatusResponse)
    async def submission_status(
        project_id: str,
        phase: str | None = None,
        role: str | None = None,
        machine: ApprovalStateMachine = Depends(get_state_machine),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            return await machine.get_submission_status(session, project_id, phase, role)

    @router.get("/stages/{phase}/checklist")
    async def get_checklist(
        project_id: str,
        phase: str,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        async with session_factory() as session, session.begin():
            checklist = await answer_service.get_phase_checklist(session, project_id, phase)
        if checklist is None:
            raise NotFoundError(f"No checklist for phase {phase}")
        return checklist

    @router.patch("/stages/{phase}/checklist/groups/{group_id}/questions/{question_id}/{role}")
    async def update_question(
        project_id: str,
        phase: str,
        group_id: str,
        question_id: str,
        role: str,
        body: dict[str, Any],
        actor_id: str | None = Depends(get_actor_id),  # noqa: B008
        janitor: ImageJanitor | None = Depends(get_janitor),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        async with session_factory() as session, session.begin():
            group = await answer_service.update_question(
                session,
                project_id,
                phase,
                group_id,
                question_id,
                role,
                body,
                actor=actor_id,
                janitor=janitor,
            )
        return group.model_dump(mode="json")

    @router.get("/stages/{phase}/iterations")
    async def get_iterations(
        project_id: str,
        phase: str,
        machine: ApprovalStateMachine = Depends(get_state_machine),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            return await machine.get_iterations(session, project_id, phase)

    return router
