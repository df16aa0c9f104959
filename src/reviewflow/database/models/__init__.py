"""SQLAlchemy ORM models for Reviewflow.

This module defines the database schema: projects, stages, project
checklists, checklist approvals and the checklist template.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from reviewflow.database.models.approval import ApprovalStatus, ChecklistApproval
from reviewflow.database.models.base import Base, JSONDocument, TimestampMixin, utcnow
from reviewflow.database.models.checklist import ProjectChecklist
from reviewflow.database.models.project import Project, ProjectStatus
from reviewflow.database.models.stage import Stage, StageStatus, stage_key_for
from reviewflow.database.models.template import ChecklistTemplate

__all__ = [
    "Base",
    "TimestampMixin",
    "JSONDocument",
    "utcnow",
    "Project",
    "ProjectStatus",
    "Stage",
    "StageStatus",
    "stage_key_for",
    "ProjectChecklist",
    "ChecklistApproval",
    "ApprovalStatus",
    "ChecklistTemplate",
]
