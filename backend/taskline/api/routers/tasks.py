from __future__ import annotations

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskline.api.access import ensure_task_access, ensure_task_assignee, visible_task_clause
from taskline.api.deps import get_current_user, require_admin
from taskline.db import get_db
from taskline.models.enums import TaskKind, TaskStatus
from taskline.models.project import Project
from taskline.models.task import Task
from taskline.models.user import User
from taskline.schemas.task import (
    TaskCreate,
    TaskDeleted,
    TaskOut,
    TaskProgressOut,
    TaskProgressUpdate,
    TaskStatusUpdate,
    TaskUpdate,
)
from taskline.services.audit import add_audit_log
from taskline.services.clock import local_now, to_local
from taskline.services.recurrence import RecurrenceValidationError, validate_recurrence
from taskline.services.recurring_instances import materialize_instance, rollover_recurring_task
from taskline.services.task_classification import kind_for, listable_task_clause, recurring_template_clause
from taskline.services.task_lifecycle import (
    apply_status_change,
    clamp_progress,
    history_entry,
    normalize_subtasks,
    normalize_tags,
)


router = APIRouter()
logger = logging.getLogger(__name__)


def _local_or_none(value: datetime | None) -> datetime | None:
    return to_local(value) if value is not None else None


def _task_to_out(task: Task) -> TaskOut:
    return TaskOut(
        id=task.id,
        title=task.title,
        description=task.description,
        priority=task.priority,
        status=task.status,
        deadline=_local_or_none(task.deadline),
        project_id=task.project_id,
        assignee_id=task.assignee_id,
        reporter_id=task.reporter_id,
        tags=task.tags or [],
        subtasks=task.subtasks or [],
        kind=task.kind,
        recurring=task.recurring,
        recurring_days=task.recurring_days,
        parent_recurring_id=task.parent_recurring_id,
        module_id=task.module_id,
        progress=task.progress or 0,
        started_at=_local_or_none(task.started_at),
        completed_at=_local_or_none(task.completed_at),
        history=task.history or [],
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def _audit_snapshot(task: Task) -> dict:
    return {
        "title": task.title,
        "status": task.status.value,
        "priority": task.priority.value,
        "assignee_id": str(task.assignee_id) if task.assignee_id else None,
        "deadline": task.deadline.isoformat() if task.deadline else None,
        "recurring": task.recurring.value if task.recurring else None,
        "progress": task.progress,
    }


async def _task_for_id(db: AsyncSession, task_id: uuid.UUID) -> Task:
    task = (await db.execute(select(Task).where(Task.id == task_id))).scalar_one_or_none()
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


async def _project_for_id(db: AsyncSession, project_id: uuid.UUID) -> Project:
    project = (await db.execute(select(Project).where(Project.id == project_id))).scalar_one_or_none()
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


async def _ensure_user_exists(db: AsyncSession, user_id: uuid.UUID) -> None:
    found = (await db.execute(select(User.id).where(User.id == user_id))).scalar_one_or_none()
    if found is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assigned user not found")


async def _run_rollover(db: AsyncSession, task: Task, now: datetime) -> None:
    # The status change is already committed; a failed rollover must not undo it.
    try:
        await rollover_recurring_task(db, task, now=now)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Recurring rollover failed for task %s", task.id)


@router.get("", response_model=list[TaskOut])
async def list_tasks(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> list[TaskOut]:
    stmt = select(Task).where(listable_task_clause())
    visibility = visible_task_clause(user)
    if visibility is not None:
        stmt = stmt.where(visibility)
    tasks = (await db.execute(stmt.order_by(Task.created_at))).scalars().all()
    return [_task_to_out(t) for t in tasks]


@router.get("/recurring-templates", response_model=list[TaskOut])
async def list_recurring_templates(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> list[TaskOut]:
    stmt = select(Task).where(recurring_template_clause())
    visibility = visible_task_clause(user)
    if visibility is not None:
        stmt = stmt.where(visibility)
    tasks = (await db.execute(stmt.order_by(Task.created_at))).scalars().all()
    return [_task_to_out(t) for t in tasks]


@router.get("/employee/{employee_id}", response_model=list[TaskOut])
async def list_employee_tasks(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[TaskOut]:
    stmt = (
        select(Task)
        .where(Task.assignee_id == employee_id, listable_task_clause())
        .order_by(Task.created_at.desc())
    )
    tasks = (await db.execute(stmt)).scalars().all()
    return [_task_to_out(t) for t in tasks]


@router.get("/{task_id}", response_model=TaskOut)
async def get_task(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TaskOut:
    task = await _task_for_id(db, task_id)
    ensure_task_assignee(user, task)
    return _task_to_out(task)


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TaskOut:
    try:
        recurring_days = validate_recurrence(payload.recurring, payload.recurring_days, creating=True)
    except RecurrenceValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    await _project_for_id(db, payload.project_id)
    if payload.assignee_id is not None:
        await _ensure_user_exists(db, payload.assignee_id)

    now = local_now()
    task = Task(
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        status=TaskStatus.TODO,
        deadline=payload.deadline,
        project_id=payload.project_id,
        assignee_id=payload.assignee_id or user.id,
        reporter_id=user.id,
        tags=normalize_tags(payload.tags),
        subtasks=normalize_subtasks(payload.subtasks),
        module_id=payload.module_id,
        progress=0,
        kind=kind_for(payload.recurring, None),
        recurring=payload.recurring,
        recurring_days=recurring_days,
        history=[history_entry(TaskStatus.TODO, now)],
    )
    db.add(task)
    await db.flush()

    add_audit_log(
        db=db,
        actor_user_id=user.id,
        entity_type="task",
        entity_id=task.id,
        action="created",
        after=_audit_snapshot(task),
    )

    # A new Daily/Weekly template shows up in To Do right away through its first instance.
    result = task
    if task.kind == TaskKind.template and task.deadline is not None:
        instance = await materialize_instance(db, task, task.deadline, now=now)
        if instance is not None:
            result = instance

    await db.commit()
    await db.refresh(result)
    return _task_to_out(result)


@router.put("/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: uuid.UUID,
    payload: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TaskOut:
    task = await _task_for_id(db, task_id)
    ensure_task_access(user, task)
    fields = payload.model_fields_set
    before = _audit_snapshot(task)

    if "recurring" in fields or "recurring_days" in fields:
        recurring = payload.recurring if "recurring" in fields else task.recurring
        days = payload.recurring_days if "recurring_days" in fields else task.recurring_days
        if recurring is not None and task.kind == TaskKind.instance:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A recurring instance cannot itself be made recurring",
            )
        try:
            task.recurring_days = validate_recurrence(recurring, days, creating=False)
        except RecurrenceValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        task.recurring = recurring
        task.kind = kind_for(recurring, task.parent_recurring_id)

    if payload.title is not None:
        task.title = payload.title
    if "description" in fields:
        task.description = payload.description
    if payload.priority is not None:
        task.priority = payload.priority
    if payload.deadline is not None:
        task.deadline = payload.deadline
    if payload.project_id is not None:
        await _project_for_id(db, payload.project_id)
        task.project_id = payload.project_id
    if "assignee_id" in fields:
        if payload.assignee_id is not None:
            await _ensure_user_exists(db, payload.assignee_id)
        task.assignee_id = payload.assignee_id
    if "tags" in fields:
        task.tags = normalize_tags(payload.tags)
    if payload.subtasks is not None:
        task.subtasks = normalize_subtasks(payload.subtasks)
    if "module_id" in fields:
        task.module_id = payload.module_id
    if payload.progress is not None:
        task.progress = clamp_progress(payload.progress)

    add_audit_log(
        db=db,
        actor_user_id=user.id,
        entity_type="task",
        entity_id=task.id,
        action="updated",
        before=before,
        after=_audit_snapshot(task),
    )

    await db.commit()
    await db.refresh(task)
    return _task_to_out(task)


@router.patch("/{task_id}/status", response_model=TaskOut)
async def update_task_status(
    task_id: uuid.UUID,
    payload: TaskStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TaskOut:
    task = await _task_for_id(db, task_id)
    ensure_task_assignee(user, task)

    now = local_now()
    previous = apply_status_change(task, payload.status, now)
    add_audit_log(
        db=db,
        actor_user_id=user.id,
        entity_type="task",
        entity_id=task.id,
        action="status_changed",
        before={"status": previous.value},
        after={"status": task.status.value},
    )
    await db.commit()

    # Re-sending Completed must not roll the task over a second time.
    completed_now = task.status == TaskStatus.COMPLETED and previous != TaskStatus.COMPLETED
    if completed_now and task.recurring is not None:
        await _run_rollover(db, task, now)

    await db.refresh(task)
    return _task_to_out(task)


@router.patch("/{task_id}/progress", response_model=TaskProgressOut)
async def update_task_progress(
    task_id: uuid.UUID,
    payload: TaskProgressUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TaskProgressOut:
    task = await _task_for_id(db, task_id)
    ensure_task_assignee(user, task)
    task.progress = clamp_progress(payload.progress)
    await db.commit()
    return TaskProgressOut(id=task.id, progress=task.progress)


@router.delete("/{task_id}", response_model=TaskDeleted)
async def delete_task(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TaskDeleted:
    task = await _task_for_id(db, task_id)
    ensure_task_access(user, task)

    add_audit_log(
        db=db,
        actor_user_id=user.id,
        entity_type="task",
        entity_id=task.id,
        action="deleted",
        before=_audit_snapshot(task),
    )
    await db.delete(task)
    await db.commit()
    return TaskDeleted(message="Task removed", id=task_id)
