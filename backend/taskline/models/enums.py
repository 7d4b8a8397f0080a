from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    admin = "admin"
    employee = "employee"


class TaskPriority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TaskStatus(str, enum.Enum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    REVIEW = "Review"


class RecurrenceType(str, enum.Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


class TaskKind(str, enum.Enum):
    template = "template"
    instance = "instance"
    one_off = "one_off"


# New templates may only be created with these; Monthly is reachable through update only.
CREATABLE_RECURRENCES = (RecurrenceType.DAILY, RecurrenceType.WEEKLY)
SWEEPABLE_RECURRENCES = (RecurrenceType.DAILY, RecurrenceType.WEEKLY)
