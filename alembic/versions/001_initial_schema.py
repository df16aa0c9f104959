"""Initial schema for Reviewflow.

Creates the review workflow tables: projects, stages, project_checklists,
checklist_approvals and templates, together with the unique keys that
make checklist materialization and approval upserts race-safe.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import ENUM, JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PROJECT_STATUSES = ("pending", "in_progress", "completed")
STAGE_STATUSES = ("pending", "in_progress", "completed")
APPROVAL_STATUSES = ("pending", "approved", "reverted_to_executor")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    project_status = sa.Enum(*PROJECT_STATUSES, name="project_status")
    project_status.create(op.get_bind(), checkfirst=True)

    stage_status = sa.Enum(*STAGE_STATUSES, name="stage_status")
    stage_status.create(op.get_bind(), checkfirst=True)

    approval_status = sa.Enum(*APPROVAL_STATUSES, name="approval_status")
    approval_status.create(op.get_bind(), checkfirst=True)

    # Projects table
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status",
            ENUM(*PROJECT_STATUSES, name="project_status", create_type=False),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("created_by", sa.Text(), nullable=True),
        *_timestamps(),
    )

    # Stages table
    op.create_table(
        "stages",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column(
            "project_id",
            sa.Uuid(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("phase_number", sa.Integer(), nullable=False),
        sa.Column("stage_key", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column(
            "status",
            ENUM(*STAGE_STATUSES, name="stage_status", create_type=False),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("conflict_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.UniqueConstraint("project_id", "phase_number", name="uq_stages_project_phase"),
    )
    op.create_index("ix_stages_project_id", "stages", ["project_id"])

    # Project checklists table
    op.create_table(
        "project_checklists",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column(
            "project_id",
            sa.Uuid(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "stage_id",
            sa.Uuid(),
            sa.ForeignKey("stages.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("phase_number", sa.Integer(), nullable=False),
        sa.Column("stage_name", sa.Text(), nullable=False),
        sa.Column("groups", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("iterations", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("current_iteration", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.UniqueConstraint("project_id", "stage_id", name="uq_checklists_project_stage"),
    )
    op.create_index("ix_project_checklists_project_id", "project_checklists", ["project_id"])
    op.create_index("ix_project_checklists_stage_id", "project_checklists", ["stage_id"])

    # Checklist approvals table
    op.create_table(
        "checklist_approvals",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column(
            "project_id",
            sa.Uuid(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("phase", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            ENUM(*APPROVAL_STATUSES, name="approval_status", create_type=False),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("executor_submitted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("executor_submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewer_submitted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reviewer_submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revert_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("decided_by", sa.Text(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
        sa.UniqueConstraint("project_id", "phase", name="uq_approvals_project_phase"),
    )
    op.create_index("ix_checklist_approvals_project_id", "checklist_approvals", ["project_id"])

    # Templates table (single row)
    op.create_table(
        "templates",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("phases", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("stage_names", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column(
            "defect_categories", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")
        ),
        sa.Column("modified_by", sa.Text(), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("templates")
    op.drop_table("checklist_approvals")
    op.drop_table("project_checklists")
    op.drop_table("stages")
    op.drop_table("projects")

    sa.Enum(name="approval_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="stage_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="project_status").drop(op.get_bind(), checkfirst=True)
