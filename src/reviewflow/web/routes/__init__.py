"""FastAPI route definitions for the Reviewflow API.

This module contains route handlers for health checks, projects,
checklist answers, approvals, defect analytics and the template.
"""

from __future__ import annotations

from reviewflow.web.routes.analytics import create_analytics_router
from reviewflow.web.routes.approvals import ApprovalResponse, create_approvals_router
from reviewflow.web.routes.checklists import create_checklists_router
from reviewflow.web.routes.health import (
    HealthResponse,
    ReadinessResponse,
    create_health_router,
)
from reviewflow.web.routes.projects import (
    ProjectCreate,
    ProjectResponse,
    StageResponse,
    create_projects_router,
)
from reviewflow.web.routes.template import create_template_router

__all__ = [
    # Health
    "HealthResponse",
    "ReadinessResponse",
    "create_health_router",
    # Projects
    "ProjectCreate",
    "ProjectResponse",
    "StageResponse",
    "create_projects_router",
    # Checklists
    "create_checklists_router",
    # Approvals
    "ApprovalResponse",
    "create_approvals_router",
    # Analytics
    "create_analytics_router",
    # Template
    "create_template_router",
]
