from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta

from taskline.models.enums import CREATABLE_RECURRENCES, RecurrenceType
from taskline.models.task import Task
from taskline.services.clock import server_zone, to_local


DAY_END = time(23, 59, 59, 999000)


class RecurrenceValidationError(ValueError):
    pass


def weekday_index(day: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7


def is_scheduled_on(template: Task, day: date) -> bool:
    if template.recurring == RecurrenceType.DAILY:
        return True
    if template.recurring == RecurrenceType.WEEKLY:
        return weekday_index(day) in (template.recurring_days or [])
    return False


def time_of_day(template: Task) -> tuple[int, int] | None:
    if template.deadline is None:
        return None
    local = to_local(template.deadline)
    return local.hour, local.minute


def is_due_at(template: Task, moment: datetime) -> bool:
    """
    True when ``moment`` falls on the template's (hour, minute) on a scheduled day.

    Only the exact minute matches; an earlier or later minute on the same day does not.
    Whether an instance already exists is not considered here.
    """
    scheduled = time_of_day(template)
    if scheduled is None:
        return False
    local = to_local(moment)
    if (local.hour, local.minute) != scheduled:
        return False
    return is_scheduled_on(template, local.date())


def occurrence_moment(template: Task, day: date) -> datetime:
    hour, minute = time_of_day(template) or (0, 0)
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=server_zone())


def day_window(day: date) -> tuple[datetime, datetime]:
    zone = server_zone()
    return datetime.combine(day, time.min, tzinfo=zone), datetime.combine(day, DAY_END, tzinfo=zone)


def _add_month(moment: datetime) -> datetime:
    year = moment.year + moment.month // 12
    month = moment.month % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def next_occurrence(deadline: datetime, recurring: RecurrenceType) -> datetime:
    local = to_local(deadline)
    if recurring == RecurrenceType.DAILY:
        return local + timedelta(days=1)
    if recurring == RecurrenceType.WEEKLY:
        return local + timedelta(days=7)
    if recurring == RecurrenceType.MONTHLY:
        return _add_month(local)
    raise RecurrenceValidationError(f"Unsupported recurrence: {recurring}")


def validate_recurrence(
    recurring: RecurrenceType | None,
    recurring_days: list[int] | None,
    *,
    creating: bool,
) -> list[int] | None:
    """Check a recurrence request and return the normalized weekday list to store."""
    if recurring is None:
        return None
    if creating and recurring not in CREATABLE_RECURRENCES:
        raise RecurrenceValidationError("Recurring must be Daily or Weekly")
    if recurring != RecurrenceType.WEEKLY:
        return None
    if not recurring_days:
        raise RecurrenceValidationError("Weekly recurring requires at least one day selected")
    invalid = [d for d in recurring_days if not isinstance(d, int) or isinstance(d, bool) or not 0 <= d <= 6]
    if invalid:
        raise RecurrenceValidationError("Recurring days must be weekday indices between 0 (Sunday) and 6 (Saturday)")
    return sorted(set(recurring_days))
