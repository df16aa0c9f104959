"""Checklist template query functions for Reviewflow.

Exactly one template row is expected. Reads return the oldest row so that
a stray duplicate can never change which template is served.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database.models.template import ChecklistTemplate

logger = structlog.get_logger(__name__)


async def get_template(session: AsyncSession) -> ChecklistTemplate | None:
    """Return the global template, or None if none has been configured."""
    stmt = select(ChecklistTemplate).order_by(ChecklistTemplate.created_at.asc()).limit(1)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def save_template(
    session: AsyncSession,
    name: str,
    phases: dict[str, Any],
    stage_names: dict[str, str],
    defect_categories: list[dict[str, Any]],
    modified_by: str | None = None,
) -> ChecklistTemplate:
    """Create or replace the global template.

    Already-materialized checklists are unaffected; they were copied from
    the template when created.

    Returns:
        The stored template.
    """
    template = await get_template(session)
    if template is None:
        template = ChecklistTemplate()
        session.add(template)

    template.name = name
    template.phases = phases
    template.stage_names = stage_names
    template.defect_categories = defect_categories
    template.modified_by = modified_by
    await session.flush()

    logger.info(
        "template_saved",
        template_id=str(template.id),
        stage_keys=sorted(phases.keys()),
        modified_by=modified_by,
    )
    return template
