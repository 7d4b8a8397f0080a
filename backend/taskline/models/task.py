from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from taskline.db import Base
from taskline.models.enums import RecurrenceType, TaskKind, TaskPriority, TaskStatus
from taskline.models.types import JSONDocument, enum_values


class Task(Base):
    """
    A task row is exactly one of three kinds:

    - template: carries ``recurring``; defines a schedule and is not worked on directly.
    - instance: carries ``parent_recurring_id`` and ``occurrence_date``; one per template per day.
    - one_off: neither.

    ``kind`` is the discriminator and must agree with the two optional fields.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint("parent_recurring_id", "occurrence_date", name="uq_task_recurring_occurrence"),
        CheckConstraint(
            "(kind = 'template' AND recurring IS NOT NULL AND parent_recurring_id IS NULL)"
            " OR (kind = 'instance' AND recurring IS NULL AND parent_recurring_id IS NOT NULL"
            " AND occurrence_date IS NOT NULL)"
            " OR (kind = 'one_off' AND recurring IS NULL AND parent_recurring_id IS NULL)",
            name="ck_task_kind_consistent",
        ),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_task_progress_range"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), index=True, nullable=False
    )
    assignee_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    reporter_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), index=True
    )

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(String(8000))
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority, name="task_priority", values_callable=enum_values),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, name="task_status", values_callable=enum_values),
        nullable=False,
        default=TaskStatus.TODO,
    )
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    tags: Mapped[list[str]] = mapped_column(JSONDocument, nullable=False, default=list)
    # [{"id": str, "title": str, "completed": bool}]
    subtasks: Mapped[list[dict]] = mapped_column(JSONDocument, nullable=False, default=list)
    module_id: Mapped[str | None] = mapped_column(String(64))
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    kind: Mapped[TaskKind] = mapped_column(
        Enum(TaskKind, name="task_kind", values_callable=enum_values),
        nullable=False,
        default=TaskKind.one_off,
        index=True,
    )
    recurring: Mapped[RecurrenceType | None] = mapped_column(
        Enum(RecurrenceType, name="recurrence_type", values_callable=enum_values)
    )
    # Weekday indices, 0=Sunday .. 6=Saturday.
    recurring_days: Mapped[list[int] | None] = mapped_column(JSONDocument)
    # No FK: instances keep pointing at a deleted template, exactly like before deletion.
    parent_recurring_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)
    occurrence_date: Mapped[date | None] = mapped_column(Date)

    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    # [{"status": str, "timestamp": iso-8601 str}]; append-only.
    history: Mapped[list[dict]] = mapped_column(JSONDocument, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
