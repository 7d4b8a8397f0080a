from __future__ import annotations

import unittest
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import taskline.models  # noqa: F401
from taskline.db import Base
from taskline.models.enums import RecurrenceType, TaskKind, TaskPriority, TaskStatus, UserRole
from taskline.models.project import Project
from taskline.models.project_member import ProjectMember
from taskline.models.task import Task
from taskline.models.user import User
from taskline.services.clock import server_zone


def local(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=server_zone())


class DatabaseTestCase(unittest.IsolatedAsyncioTestCase):
    """Fresh in-memory SQLite schema per test, with one admin, one employee and one project."""

    async def asyncSetUp(self) -> None:
        self.engine = create_async_engine(
            "sqlite+aiosqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.sessions = async_sessionmaker(self.engine, expire_on_commit=False)

        async with self.sessions() as db:
            self.admin = User(
                name="Admin", email="admin@example.com", role=UserRole.admin, password_hash="x"
            )
            self.employee = User(
                name="Employee", email="employee@example.com", role=UserRole.employee, password_hash="x"
            )
            db.add_all([self.admin, self.employee])
            await db.flush()
            self.project = Project(name="General", category="Operations", initial="G", manager_id=self.admin.id)
            db.add(self.project)
            await db.flush()
            db.add(ProjectMember(project_id=self.project.id, user_id=self.employee.id))
            await db.commit()

    async def asyncTearDown(self) -> None:
        await self.engine.dispose()

    async def make_task(self, **overrides) -> Task:
        recurring = overrides.get("recurring")
        values = {
            "title": "Check inbox",
            "project_id": self.project.id,
            "assignee_id": self.employee.id,
            "reporter_id": self.admin.id,
            "priority": TaskPriority.MEDIUM,
            "status": TaskStatus.TODO,
            "kind": TaskKind.template if recurring is not None else TaskKind.one_off,
            "history": [],
        }
        values.update(overrides)
        async with self.sessions() as db:
            task = Task(**values)
            db.add(task)
            await db.commit()
            await db.refresh(task)
        return task

    async def make_template(
        self,
        deadline: datetime,
        recurring: RecurrenceType = RecurrenceType.DAILY,
        recurring_days: list[int] | None = None,
        **overrides,
    ) -> Task:
        return await self.make_task(
            recurring=recurring,
            recurring_days=recurring_days,
            deadline=deadline,
            **overrides,
        )

    async def instances_of(self, template_id: uuid.UUID) -> list[Task]:
        async with self.sessions() as db:
            rows = (
                await db.execute(
                    select(Task).where(Task.parent_recurring_id == template_id).order_by(Task.deadline)
                )
            ).scalars().all()
        return list(rows)
