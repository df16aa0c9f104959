"""Project endpoints for Reviewflow.

Projects are created pending, started once (which lays out their phases
from the template) and completed by the approval of their last phase.

Example:
    >>> from fastapi import FastAPI
    >>> from reviewflow.web.routes.projects import create_projects_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_projects_router())
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi import status as http_status
from pydantic import BaseModel, Field

from reviewflow.database.models.project import ProjectStatus
from reviewflow.database.models.stage import StageStatus
from reviewflow.database.queries import project as project_queries
from reviewflow.errors import InvalidArgumentError, NotFoundError
from reviewflow.logging import get_logger
from reviewflow.review import lifecycle
from reviewflow.review.validation import parse_project_id
from reviewflow.web.dependencies import get_actor_id, get_session_factory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class ProjectCreate(BaseModel):
    """Request schema for creating a project.

    Attributes:
        name: Human-readable project name (1-255 characters)
        description: Optional free-text description
    """

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None


class ProjectResponse(BaseModel):
    """Response schema for project data."""

    id: UUID
    name: str
    description: str | None
    status: ProjectStatus
    created_by: str | None
    created_at: Any
    updated_at: Any

    model_config = {"from_attributes": True}


class StageResponse(BaseModel):
    """Response schema for one phase of a project."""

    id: UUID
    project_id: UUID
    phase_number: int
    stage_key: str
    name: str
    status: StageStatus
    conflict_count: int

    model_config = {"from_attributes": True}


def create_projects_router() -> APIRouter:
    """Create projects router.

    Routes:
        GET /projects/ - List projects, optionally filtered by status
        GET /projects/{project_id} - Get project by ID
        POST /projects/ - Create a pending project
        DELETE /projects/{project_id} - Delete a project and everything under it
        POST /projects/{project_id}/start - Start a pending project
        GET /projects/{project_id}/stages - List the project's phases
    """
    router = APIRouter(prefix="/projects", tags=["projects"])

    @router.get("/", response_model=list[ProjectResponse])
    async def list_projects(
        status: str | None = None,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[ProjectResponse]:
        """List projects newest first.

        Raises:
            InvalidArgumentError: If the status filter is not a project status.
        """
        status_enum = None
        if status is not None:
            try:
                status_enum = ProjectStatus(status)
            except ValueError:
                raise InvalidArgumentError(
                    f"Invalid status: {status}. Valid values: {[s.value for s in ProjectStatus]}"
                ) from None

        async with session_factory() as session:
            projects = await project_queries.list_projects(session, status_filter=status_enum)

        logger.info("projects_listed", count=len(projects), status_filter=status)
        return [ProjectResponse.model_validate(p) for p in projects]

    @router.get("/{project_id}", response_model=ProjectResponse)
    async def get_project(
        project_id: str,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProjectResponse:
        project_uuid = parse_project_id(project_id)
        async with session_factory() as session:
            project = await project_queries.get_project(session, project_uuid)

        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return ProjectResponse.model_validate(project)

    @router.post(
        "/",
        response_model=ProjectResponse,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def create_project(
        body: ProjectCreate,
        actor_id: str | None = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProjectResponse:
        async with session_factory() as session, session.begin():
            project = await project_queries.create_project(
                session,
                name=body.name,
                description=body.description,
                created_by=actor_id,
            )
            response = ProjectResponse.model_validate(project)
        return response

    @router.delete("/{project_id}", status_code=http_status.HTTP_204_NO_CONTENT)
    async def delete_project(
        project_id: str,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> None:
        project_uuid = parse_project_id(project_id)
        async with session_factory() as session, session.begin():
            deleted = await project_queries.delete_project(session, project_uuid)

        if not deleted:
            raise NotFoundError(f"Project {project_id} not found")

    @router.post("/{project_id}/start", response_model=ProjectResponse)
    async def start_project(
        project_id: str,
        actor_id: str | None = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProjectResponse:
        """Start a pending project.

        Raises:
            InvalidArgumentError: If the project is not pending.
            NotFoundError: If the project does not exist.
            TemplateMissingError: If no template is configured.
        """
        async with session_factory() as session, session.begin():
            project = await lifecycle.start_project(session, project_id, actor=actor_id)
            response = ProjectResponse.model_validate(project)
        return response

    @router.get("/{project_id}/stages", response_model=list[StageResponse])
    async def list_stages(
        project_id: str,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[StageResponse]:
        async with session_factory() as session:
            stages = await lifecycle.list_stages(session, project_id)
        return [StageResponse.model_validate(s) for s in stages]

    return router
