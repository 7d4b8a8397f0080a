from __future__ import annotations

import uuid

from fastapi import HTTPException, status
from sqlalchemy import or_, select

from taskline.models.enums import UserRole
from taskline.models.project_member import ProjectMember
from taskline.models.task import Task
from taskline.models.user import User


def ensure_admin(user: User) -> None:
    if user.role != UserRole.admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def ensure_task_assignee(user: User, task: Task) -> None:
    if user.role == UserRole.admin:
        return
    if task.assignee_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized for this task")


def ensure_task_access(user: User, task: Task) -> None:
    if user.role == UserRole.admin:
        return
    if user.id not in (task.assignee_id, task.reporter_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized for this task")


def ensure_project_member(user: User, team_ids: list[uuid.UUID]) -> None:
    if user.role == UserRole.admin:
        return
    if user.id not in team_ids:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized for this project")


def team_project_ids(user_id: uuid.UUID):
    return select(ProjectMember.project_id).where(ProjectMember.user_id == user_id).scalar_subquery()


def visible_task_clause(user: User):
    """Employees see tasks they are assigned to, reported, or that belong to a project they are on."""
    if user.role == UserRole.admin:
        return None
    return or_(
        Task.assignee_id == user.id,
        Task.reporter_id == user.id,
        Task.project_id.in_(team_project_ids(user.id)),
    )
