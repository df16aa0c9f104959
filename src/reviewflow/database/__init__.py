"""Database layer for Reviewflow.

This module handles database connections, session management, and provides
the SQLAlchemy async engine configuration.

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    Base: SQLAlchemy declarative base for all models.
"""

from reviewflow.database.connection import get_engine, get_session_factory
from reviewflow.database.models import (
    ApprovalStatus,
    Base,
    ChecklistApproval,
    ChecklistTemplate,
    Project,
    ProjectChecklist,
    ProjectStatus,
    Stage,
    StageStatus,
    TimestampMixin,
)

__all__ = [
    "get_engine",
    "get_session_factory",
    "Base",
    "TimestampMixin",
    "Project",
    "ProjectStatus",
    "Stage",
    "StageStatus",
    "ProjectChecklist",
    "ChecklistApproval",
    "ApprovalStatus",
    "ChecklistTemplate",
]
