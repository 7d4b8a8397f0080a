from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskline.api.access import ensure_admin, ensure_project_member, team_project_ids
from taskline.api.deps import get_current_user
from taskline.db import get_db
from taskline.models.enums import TaskStatus, UserRole
from taskline.models.project import Project
from taskline.models.project_member import ProjectMember
from taskline.models.task import Task
from taskline.models.user import User
from taskline.schemas.project import ModuleCreate, ProjectCreate, ProjectOut, ProjectUpdate


router = APIRouter()


async def _project_for_id(db: AsyncSession, project_id: uuid.UUID) -> Project:
    project = (await db.execute(select(Project).where(Project.id == project_id))).scalar_one_or_none()
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


async def _team_ids(db: AsyncSession, project_id: uuid.UUID) -> list[uuid.UUID]:
    rows = (
        await db.execute(select(ProjectMember.user_id).where(ProjectMember.project_id == project_id))
    ).scalars().all()
    return list(rows)


async def _set_team(db: AsyncSession, project_id: uuid.UUID, user_ids: list[uuid.UUID]) -> None:
    unique_ids = list(dict.fromkeys(user_ids))
    if unique_ids:
        found = set((await db.execute(select(User.id).where(User.id.in_(unique_ids)))).scalars().all())
        missing = [str(uid) for uid in unique_ids if uid not in found]
        if missing:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown team members: {', '.join(missing)}")
    await db.execute(delete(ProjectMember).where(ProjectMember.project_id == project_id))
    for uid in unique_ids:
        db.add(ProjectMember(project_id=project_id, user_id=uid))


async def _project_to_out(db: AsyncSession, project: Project) -> ProjectOut:
    counts = (
        await db.execute(
            select(Task.status, func.count())
            .where(Task.project_id == project.id)
            .group_by(Task.status)
        )
    ).all()
    tasks_count = sum(count for _, count in counts)
    completed = sum(count for task_status, count in counts if task_status == TaskStatus.COMPLETED)
    return ProjectOut(
        id=project.id,
        name=project.name,
        category=project.category,
        icon_color=project.icon_color,
        initial=project.initial,
        manager_id=project.manager_id,
        team=await _team_ids(db, project.id),
        modules=project.modules or [],
        tasks_count=tasks_count,
        completion=round(completed * 100 / tasks_count) if tasks_count else 0,
        created_at=project.created_at,
    )


@router.get("", response_model=list[ProjectOut])
async def list_projects(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> list[ProjectOut]:
    stmt = select(Project)
    if user.role != UserRole.admin:
        stmt = stmt.where(Project.id.in_(team_project_ids(user.id)))
    projects = (await db.execute(stmt.order_by(Project.created_at))).scalars().all()
    return [await _project_to_out(db, p) for p in projects]


@router.post("", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> ProjectOut:
    ensure_admin(user)
    project = Project(
        name=payload.name,
        category=payload.category,
        initial=payload.initial or payload.name[:1].upper(),
        manager_id=user.id,
        modules=[m.model_dump() for m in payload.modules],
    )
    if payload.icon_color:
        project.icon_color = payload.icon_color
    db.add(project)
    await db.flush()
    await _set_team(db, project.id, payload.team)
    await db.commit()
    await db.refresh(project)
    return await _project_to_out(db, project)


@router.get("/{project_id}", response_model=ProjectOut)
async def get_project(
    project_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> ProjectOut:
    project = await _project_for_id(db, project_id)
    ensure_project_member(user, await _team_ids(db, project.id))
    return await _project_to_out(db, project)


@router.put("/{project_id}", response_model=ProjectOut)
async def update_project(
    project_id: uuid.UUID,
    payload: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> ProjectOut:
    ensure_admin(user)
    project = await _project_for_id(db, project_id)

    if payload.name is not None:
        project.name = payload.name
    if payload.category is not None:
        project.category = payload.category
    if payload.icon_color is not None:
        project.icon_color = payload.icon_color
    if payload.initial is not None:
        project.initial = payload.initial
    if payload.team is not None:
        await _set_team(db, project.id, payload.team)

    await db.commit()
    await db.refresh(project)
    return await _project_to_out(db, project)


@router.delete("/{project_id}")
async def delete_project(
    project_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> dict:
    ensure_admin(user)
    project = await _project_for_id(db, project_id)
    await db.execute(delete(Task).where(Task.project_id == project.id))
    await db.execute(delete(ProjectMember).where(ProjectMember.project_id == project.id))
    await db.delete(project)
    await db.commit()
    return {"message": "Project removed", "id": str(project_id)}


@router.post("/{project_id}/modules", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def add_module(
    project_id: uuid.UUID,
    payload: ModuleCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> ProjectOut:
    project = await _project_for_id(db, project_id)
    ensure_project_member(user, await _team_ids(db, project.id))
    project.modules = [*(project.modules or []), {"id": f"m{uuid.uuid4().hex[:8]}", "name": payload.name}]
    await db.commit()
    await db.refresh(project)
    return await _project_to_out(db, project)


@router.delete("/{project_id}/modules/{module_id}", response_model=ProjectOut)
async def delete_module(
    project_id: uuid.UUID,
    module_id: str,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> ProjectOut:
    ensure_admin(user)
    project = await _project_for_id(db, project_id)
    remaining = [m for m in (project.modules or []) if m.get("id") != module_id]
    if len(remaining) == len(project.modules or []):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Module not found")
    project.modules = remaining
    await db.commit()
    await db.refresh(project)
    return await _project_to_out(db, project)
