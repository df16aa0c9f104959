"""Checklist template endpoints for Reviewflow.

A single global template exists. Replacing it only affects checklists
materialized afterwards.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends

from reviewflow.database.queries import template as template_queries
from reviewflow.errors import TemplateMissingError
from reviewflow.logging import get_logger
from reviewflow.review.template import TemplateDocument
from reviewflow.web.dependencies import get_actor_id, get_session_factory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


def _template_payload(template: Any) -> dict[str, Any]:
    return {
        "id": str(template.id),
        "name": template.name,
        "phases": template.phases,
        "stage_names": template.stage_names,
        "defect_categories": template.defect_categories,
        "modified_by": template.modified_by,
        "updated_at": template.updated_at,
    }


def create_template_router() -> APIRouter:
    """Create the template router.

    Routes:
        GET /template - The current template
        PUT /template - Create or replace the template
    """
    router = APIRouter(prefix="/template", tags=["template"])

    @router.get("")
    async def get_template(
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        """Return the template.

        Raises:
            TemplateMissingError: If no template has been configured.
        """
        async with session_factory() as session:
            template = await template_queries.get_template(session)
        if template is None:
            raise TemplateMissingError()
        return _template_payload(template)

    @router.put("")
    async def put_template(
        body: TemplateDocument,
        actor_id: str | None = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        document = body.model_dump(mode="json")
        async with session_factory() as session, session.begin():
            template = await template_queries.save_template(
                session,
                name=document["name"],
                phases=document["phases"],
                stage_names=document["stage_names"],
                defect_categories=document["defect_categories"],
                modified_by=actor_id,
            )
            payload = _template_payload(template)
        return payload

    return router
