"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    user_role_enum = sa.Enum("admin", "employee", name="user_role")
    task_priority_enum = sa.Enum("Low", "Medium", "High", name="task_priority")
    task_status_enum = sa.Enum("To Do", "In Progress", "Completed", "Review", name="task_status")
    task_kind_enum = sa.Enum("template", "instance", "one_off", name="task_kind")
    recurrence_type_enum = sa.Enum("Daily", "Weekly", "Monthly", name="recurrence_type")

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("avatar", sa.String(length=500)),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("icon_color", sa.String(length=100), nullable=False),
        sa.Column("initial", sa.String(length=8)),
        sa.Column("manager_id", sa.Uuid()),
        sa.Column("modules", postgresql.JSONB(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["manager_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_projects_manager_id", "projects", ["manager_id"])

    op.create_table(
        "project_members",
        sa.Column("project_id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), primary_key=True),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("assignee_id", sa.Uuid()),
        sa.Column("reporter_id", sa.Uuid()),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.String(length=8000)),
        sa.Column("priority", task_priority_enum, nullable=False),
        sa.Column("status", task_status_enum, nullable=False),
        sa.Column("deadline", sa.DateTime(timezone=True)),
        sa.Column("tags", postgresql.JSONB(), nullable=False),
        sa.Column("subtasks", postgresql.JSONB(), nullable=False),
        sa.Column("module_id", sa.String(length=64)),
        sa.Column("progress", sa.Integer(), nullable=False),
        sa.Column("kind", task_kind_enum, nullable=False),
        sa.Column("recurring", recurrence_type_enum),
        sa.Column("recurring_days", postgresql.JSONB()),
        sa.Column("parent_recurring_id", sa.Uuid()),
        sa.Column("occurrence_date", sa.Date()),
        sa.Column("started_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("history", postgresql.JSONB(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["assignee_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["reporter_id"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("parent_recurring_id", "occurrence_date", name="uq_task_recurring_occurrence"),
        sa.CheckConstraint(
            "(kind = 'template' AND recurring IS NOT NULL AND parent_recurring_id IS NULL)"
            " OR (kind = 'instance' AND recurring IS NULL AND parent_recurring_id IS NOT NULL"
            " AND occurrence_date IS NOT NULL)"
            " OR (kind = 'one_off' AND recurring IS NULL AND parent_recurring_id IS NULL)",
            name="ck_task_kind_consistent",
        ),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_task_progress_range"),
    )
    op.create_index("ix_tasks_project_id", "tasks", ["project_id"])
    op.create_index("ix_tasks_assignee_id", "tasks", ["assignee_id"])
    op.create_index("ix_tasks_reporter_id", "tasks", ["reporter_id"])
    op.create_index("ix_tasks_deadline", "tasks", ["deadline"])
    op.create_index("ix_tasks_kind", "tasks", ["kind"])
    op.create_index("ix_tasks_parent_recurring_id", "tasks", ["parent_recurring_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("actor_user_id", sa.Uuid()),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("before", postgresql.JSONB()),
        sa.Column("after", postgresql.JSONB()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["actor_user_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_audit_logs_actor_user_id", "audit_logs", ["actor_user_id"])
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_entity_id", table_name="audit_logs")
    op.drop_index("ix_audit_logs_entity_type", table_name="audit_logs")
    op.drop_index("ix_audit_logs_actor_user_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_tasks_parent_recurring_id", table_name="tasks")
    op.drop_index("ix_tasks_kind", table_name="tasks")
    op.drop_index("ix_tasks_deadline", table_name="tasks")
    op.drop_index("ix_tasks_reporter_id", table_name="tasks")
    op.drop_index("ix_tasks_assignee_id", table_name="tasks")
    op.drop_index("ix_tasks_project_id", table_name="tasks")
    op.drop_table("tasks")

    op.drop_table("project_members")

    op.drop_index("ix_projects_manager_id", table_name="projects")
    op.drop_table("projects")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for name in ("recurrence_type", "task_kind", "task_status", "task_priority", "user_role"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
