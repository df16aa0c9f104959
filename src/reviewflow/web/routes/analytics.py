"""Defect analytics endpoints for Reviewflow."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends

from reviewflow.review import analytics
from reviewflow.web.dependencies import get_session_factory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


def create_analytics_router() -> APIRouter:
    """Create the analytics router.

    Routes:
        GET /projects/{project_id}/defect-rates - Per-iteration rates for every phase
        GET /projects/{project_id}/overall-defect-rate - Project-wide rate
        GET /projects/{project_id}/analysis - Combined project analysis
        GET /projects/{project_id}/analysis/defects-per-group - Per-group breakdown
        GET /projects/{project_id}/analysis/category-distribution - Mismatches by category
    """
    router = APIRouter(prefix="/projects/{project_id}", tags=["analytics"])

    @router.get("/defect-rates")
    async def defect_rates(
        project_id: str,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            phases = await analytics.project_defect_rates(session, project_id)
        return {"project_id": project_id, "phases": phases}

    @router.get("/overall-defect-rate")
    async def overall_defect_rate(
        project_id: str,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            return await analytics.overall_defect_rate(session, project_id)

    @router.get("/analysis")
    async def project_analysis(
        project_id: str,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            return await analytics.project_analysis(session, project_id)

    @router.get("/analysis/defects-per-group")
    async def defects_per_group(
        project_id: str,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[dict[str, Any]]:
        async with session_factory() as session:
            return await analytics.defects_per_group(session, project_id)

    @router.get("/analysis/category-distribution")
    async def category_distribution(
        project_id: str,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            return await analytics.category_distribution(session, project_id)

    return router
