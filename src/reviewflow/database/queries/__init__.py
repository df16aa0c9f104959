"""Database query functions for Reviewflow.

This module provides async query functions for all database entities:
- Project CRUD and status updates
- Stage creation, lookup by phase and atomic conflict counting
- Checklist lookup and race-safe creation
- Approval record upserts and atomic revert counting
- Template singleton access
"""

from reviewflow.database.queries.approval import (
    get_approval,
    increment_revert_count,
    upsert_approval,
)
from reviewflow.database.queries.checklist import (
    create_checklist_if_absent,
    get_checklist,
    list_checklists,
)
from reviewflow.database.queries.project import (
    create_project,
    delete_project,
    get_project,
    list_projects,
    set_project_status,
)
from reviewflow.database.queries.stage import (
    count_stages,
    create_stage,
    get_stage_by_phase,
    increment_conflict_count,
    list_stages,
    set_stage_status,
)
from reviewflow.database.queries.template import get_template, save_template

__all__ = [
    # Project queries
    "create_project",
    "get_project",
    "list_projects",
    "set_project_status",
    "delete_project",
    # Stage queries
    "create_stage",
    "get_stage_by_phase",
    "list_stages",
    "count_stages",
    "set_stage_status",
    "increment_conflict_count",
    # Checklist queries
    "get_checklist",
    "create_checklist_if_absent",
    "list_checklists",
    # Approval queries
    "get_approval",
    "upsert_approval",
    "increment_revert_count",
    # Template queries
    "get_template",
    "save_template",
]
