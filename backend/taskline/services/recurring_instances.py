from __future__ import annotations

import logging
import uuid
from datetime import date, datetime

from sqlalchemy import insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from taskline.models.enums import RecurrenceType, TaskKind, TaskStatus
from taskline.models.task import Task
from taskline.services.audit import add_audit_log
from taskline.services.clock import local_now, to_local
from taskline.services.recurrence import day_window, next_occurrence
from taskline.services.task_lifecycle import fresh_subtasks, history_entry


logger = logging.getLogger(__name__)

OCCURRENCE_KEY = ["parent_recurring_id", "occurrence_date"]


async def find_instance_for_day(db: AsyncSession, template_id: uuid.UUID, day: date) -> Task | None:
    start, end = day_window(day)
    return (
        await db.execute(
            select(Task)
            .where(
                Task.parent_recurring_id == template_id,
                Task.deadline >= start,
                Task.deadline <= end,
            )
            .limit(1)
        )
    ).scalars().first()


def _instance_values(template: Task, occurrence: datetime, now: datetime) -> dict:
    return {
        "id": uuid.uuid4(),
        "project_id": template.project_id,
        "assignee_id": template.assignee_id,
        "reporter_id": template.reporter_id,
        "title": template.title,
        "description": template.description,
        "priority": template.priority,
        "tags": list(template.tags or []),
        "subtasks": fresh_subtasks(template.subtasks),
        "module_id": template.module_id,
        "status": TaskStatus.TODO,
        "progress": 0,
        "kind": TaskKind.instance,
        "parent_recurring_id": template.id,
        "deadline": occurrence,
        "occurrence_date": occurrence.date(),
        "history": [history_entry(TaskStatus.TODO, now)],
    }


def _insert_instance_stmt(db: AsyncSession, values: dict):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(Task).values(**values).on_conflict_do_nothing(index_elements=OCCURRENCE_KEY)
    elif dialect == "sqlite":
        stmt = sqlite_insert(Task).values(**values).on_conflict_do_nothing(index_elements=OCCURRENCE_KEY)
    else:
        # The unique constraint still rejects a duplicate, as an IntegrityError.
        stmt = insert(Task).values(**values)
    return stmt.returning(Task.id)


async def materialize_instance(
    db: AsyncSession,
    template: Task,
    occurrence: datetime,
    *,
    now: datetime | None = None,
) -> Task | None:
    """
    Create the instance of ``template`` for the calendar day of ``occurrence``.

    Returns the new instance, or ``None`` when that day already has one. The caller
    owns the transaction and must commit.
    """
    if template.kind != TaskKind.template:
        raise ValueError(f"Task {template.id} is not a recurring template")

    now = now or local_now()
    occurrence = to_local(occurrence)
    day = occurrence.date()

    if await find_instance_for_day(db, template.id, day) is not None:
        return None

    created_id = (
        await db.execute(_insert_instance_stmt(db, _instance_values(template, occurrence, now)))
    ).scalar_one_or_none()
    if created_id is None:
        logger.debug("Instance of template %s for %s was created concurrently", template.id, day)
        return None

    add_audit_log(
        db=db,
        actor_user_id=None,
        entity_type="task",
        entity_id=created_id,
        action="recurring_generated",
        after={"template_id": str(template.id), "occurrence_date": day.isoformat()},
    )
    return await db.get(Task, created_id)


async def rollover_recurring_task(
    db: AsyncSession,
    task: Task,
    *,
    now: datetime | None = None,
) -> Task | None:
    """
    Create the next occurrence after a recurring task has been completed.

    Only a record that itself carries ``recurring`` rolls over; instances never do.
    The new record is a template-shaped continuation: it keeps ``recurring`` and has
    no ``parent_recurring_id``. The caller owns the transaction and must commit.
    """
    if task.recurring is None:
        return None

    now = now or local_now()
    next_deadline = next_occurrence(task.deadline if task.deadline is not None else now, task.recurring)

    continuation = Task(
        project_id=task.project_id,
        assignee_id=task.assignee_id,
        reporter_id=task.reporter_id,
        title=task.title,
        description=task.description,
        priority=task.priority,
        tags=list(task.tags or []),
        subtasks=fresh_subtasks(task.subtasks),
        module_id=task.module_id,
        status=TaskStatus.TODO,
        progress=0,
        kind=TaskKind.template,
        recurring=task.recurring,
        recurring_days=list(task.recurring_days or []) if task.recurring == RecurrenceType.WEEKLY else None,
        deadline=next_deadline,
        history=[history_entry(TaskStatus.TODO, now)],
    )
    db.add(continuation)
    await db.flush()

    add_audit_log(
        db=db,
        actor_user_id=None,
        entity_type="task",
        entity_id=continuation.id,
        action="recurring_rollover",
        after={"completed_task_id": str(task.id), "deadline": next_deadline.isoformat()},
    )
    logger.info("Rolled recurring task %s over to %s (%s)", task.id, continuation.id, next_deadline.isoformat())
    return continuation
