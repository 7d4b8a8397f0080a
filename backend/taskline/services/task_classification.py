from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import and_, or_

from taskline.models.enums import SWEEPABLE_RECURRENCES, RecurrenceType, TaskKind
from taskline.models.task import Task


def kind_for(recurring: RecurrenceType | None, parent_recurring_id: uuid.UUID | None) -> TaskKind:
    if recurring is not None and parent_recurring_id is not None:
        raise ValueError("A task cannot be both a recurring template and an instance")
    if parent_recurring_id is not None:
        return TaskKind.instance
    if recurring is not None:
        return TaskKind.template
    return TaskKind.one_off


def is_listable_task(task: Any) -> bool:
    """Instances and one-off tasks show up in normal task lists; templates never do."""
    return getattr(task, "parent_recurring_id", None) is not None or not getattr(task, "recurring", None)


def is_recurring_template(task: Any) -> bool:
    return (
        getattr(task, "recurring", None) in SWEEPABLE_RECURRENCES
        and getattr(task, "parent_recurring_id", None) is None
    )


def listable_task_clause():
    return or_(Task.parent_recurring_id.is_not(None), Task.recurring.is_(None))


def recurring_template_clause():
    return and_(Task.recurring.in_(SWEEPABLE_RECURRENCES), Task.parent_recurring_id.is_(None))


def sweepable_template_clause():
    return and_(recurring_template_clause(), Task.deadline.is_not(None))
