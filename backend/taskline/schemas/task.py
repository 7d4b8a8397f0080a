from __future__ import annotations

import re
import uuid
from datetime import date, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field

from taskline.models.enums import RecurrenceType, TaskKind, TaskPriority, TaskStatus
from taskline.services.clock import server_zone, to_local


_DAY_MONTH_YEAR_RE = re.compile(r"^\d{1,2}-[A-Za-z]{3}-\d{4}$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_deadline(value: Any) -> datetime | None:
    """
    Accept ``16-Aug-2025``, ``2025-08-16`` or a full ISO-8601 timestamp.

    Date-only values mean local midnight; naive timestamps are server-local.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_local(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=server_zone())
    if isinstance(value, str):
        text = value.strip()
        if _DAY_MONTH_YEAR_RE.match(text):
            parsed = datetime.strptime(text.title(), "%d-%b-%Y")
            return parsed.replace(tzinfo=server_zone())
        if _ISO_DATE_RE.match(text):
            return datetime.fromisoformat(text).replace(tzinfo=server_zone())
        try:
            return to_local(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError as exc:
            raise ValueError(f"Invalid deadline: {value!r}") from exc
    raise ValueError(f"Invalid deadline: {value!r}")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


Deadline = Annotated[datetime | None, BeforeValidator(parse_deadline)]
OptionalRecurrence = Annotated[RecurrenceType | None, BeforeValidator(_blank_to_none)]


class Subtask(BaseModel):
    id: str
    title: str
    completed: bool = False


class SubtaskIn(BaseModel):
    id: str | None = None
    title: str = Field(min_length=1, max_length=300)
    completed: bool = False


class HistoryEntry(BaseModel):
    status: str
    timestamp: str


class TaskOut(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    priority: TaskPriority
    status: TaskStatus
    deadline: datetime | None = None
    project_id: uuid.UUID
    assignee_id: uuid.UUID | None = None
    reporter_id: uuid.UUID | None = None
    tags: list[str] = []
    subtasks: list[Subtask] = []
    kind: TaskKind
    recurring: RecurrenceType | None = None
    recurring_days: list[int] | None = None
    parent_recurring_id: uuid.UUID | None = None
    module_id: str | None = None
    progress: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    history: list[HistoryEntry] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str | None = Field(default=None, max_length=8000)
    priority: TaskPriority = TaskPriority.MEDIUM
    deadline: Deadline = None
    project_id: uuid.UUID
    assignee_id: uuid.UUID | None = None
    tags: list[str] | str | None = None
    subtasks: list[SubtaskIn] = []
    recurring: OptionalRecurrence = None
    recurring_days: list[int] | None = None
    module_id: str | None = Field(default=None, max_length=64)


class TaskUpdate(BaseModel):
    """Partial update; a field left out is untouched, ``recurring: null`` clears recurrence."""

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = Field(default=None, max_length=8000)
    priority: TaskPriority | None = None
    deadline: Deadline = None
    project_id: uuid.UUID | None = None
    assignee_id: uuid.UUID | None = None
    tags: list[str] | str | None = None
    subtasks: list[SubtaskIn] | None = None
    recurring: OptionalRecurrence = None
    recurring_days: list[int] | None = None
    module_id: str | None = Field(default=None, max_length=64)
    progress: int | None = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskProgressUpdate(BaseModel):
    progress: int | float | None = None


class TaskProgressOut(BaseModel):
    id: uuid.UUID
    progress: int


class TaskDeleted(BaseModel):
    message: str
    id: uuid.UUID
