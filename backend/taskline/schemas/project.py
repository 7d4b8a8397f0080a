from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class ProjectModule(BaseModel):
    id: str
    name: str


class ModuleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class ProjectOut(BaseModel):
    id: uuid.UUID
    name: str
    category: str
    icon_color: str
    initial: str | None = None
    manager_id: uuid.UUID | None = None
    team: list[uuid.UUID] = []
    modules: list[ProjectModule] = []
    tasks_count: int = 0
    completion: int = 0
    created_at: datetime | None = None


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    category: str = Field(min_length=1, max_length=100)
    icon_color: str | None = Field(default=None, max_length=100)
    initial: str | None = Field(default=None, max_length=8)
    team: list[uuid.UUID] = []
    modules: list[ProjectModule] = []


class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    category: str | None = Field(default=None, min_length=1, max_length=100)
    icon_color: str | None = Field(default=None, max_length=100)
    initial: str | None = Field(default=None, max_length=8)
    team: list[uuid.UUID] | None = None
