from __future__ import annotations

import copy
from datetime import datetime
from typing import Any, Iterable

from taskline.models.enums import TaskStatus
from taskline.models.task import Task


def history_entry(status: TaskStatus, moment: datetime) -> dict:
    return {"status": status.value, "timestamp": moment.isoformat()}


def append_history(task: Task, status: TaskStatus, moment: datetime) -> None:
    # Reassign rather than mutate so the JSON column is flagged dirty.
    task.history = [*(task.history or []), history_entry(status, moment)]


def clamp_progress(value: int | float | None) -> int:
    return max(0, min(100, int(value or 0)))


def apply_status_change(task: Task, status: TaskStatus, now: datetime) -> TaskStatus:
    """Move ``task`` to ``status`` and return the status it had before."""
    previous = task.status
    task.status = status
    append_history(task, status, now)

    if status == TaskStatus.IN_PROGRESS and previous == TaskStatus.TODO:
        task.started_at = now
        task.progress = task.progress or 0

    if status == TaskStatus.COMPLETED:
        task.completed_at = now
        task.progress = 100

    return previous


def normalize_subtasks(subtasks: Iterable[Any] | None) -> list[dict]:
    normalized = []
    for idx, st in enumerate(subtasks or []):
        data = st if isinstance(st, dict) else st.model_dump()
        normalized.append(
            {
                "id": data.get("id") or f"s{idx + 1}",
                "title": data["title"],
                "completed": bool(data.get("completed") or False),
            }
        )
    return normalized


def fresh_subtasks(subtasks: Iterable[dict] | None) -> list[dict]:
    """Deep copy of ``subtasks`` with every entry marked not completed."""
    fresh = []
    for st in subtasks or []:
        item = copy.deepcopy(st)
        item["completed"] = False
        fresh.append(item)
    return fresh


def normalize_tags(tags: Any) -> list[str]:
    if tags is None:
        return []
    if isinstance(tags, (list, tuple)):
        return [str(t).strip() for t in tags if t is not None and str(t).strip()]
    value = str(tags).strip()
    return [value] if value else []
