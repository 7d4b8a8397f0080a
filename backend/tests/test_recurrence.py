import unittest
from datetime import date, datetime
from types import SimpleNamespace

from taskline.models.enums import RecurrenceType
from taskline.services.clock import server_zone
from taskline.services.recurrence import (
    RecurrenceValidationError,
    day_window,
    is_due_at,
    next_occurrence,
    occurrence_moment,
    validate_recurrence,
    weekday_index,
)


def _at(*args) -> datetime:
    return datetime(*args, tzinfo=server_zone())


def _template(recurring, deadline, days=None):
    return SimpleNamespace(recurring=recurring, deadline=deadline, recurring_days=days)


class TestWeekdayIndex(unittest.TestCase):
    def test_sunday_is_zero(self) -> None:
        self.assertEqual(weekday_index(date(2024, 1, 14)), 0)
        self.assertEqual(weekday_index(date(2024, 1, 15)), 1)
        self.assertEqual(weekday_index(date(2024, 1, 20)), 6)


class TestIsDueAt(unittest.TestCase):
    def test_daily_matches_exact_minute_only(self) -> None:
        tmpl = _template(RecurrenceType.DAILY, _at(2024, 1, 10, 9, 0))
        self.assertTrue(is_due_at(tmpl, _at(2024, 1, 11, 9, 0, 42)))
        self.assertFalse(is_due_at(tmpl, _at(2024, 1, 11, 9, 1)))
        self.assertFalse(is_due_at(tmpl, _at(2024, 1, 11, 8, 59)))

    def test_weekly_requires_selected_weekday(self) -> None:
        tmpl = _template(RecurrenceType.WEEKLY, _at(2024, 1, 8, 9, 0), days=[1, 3])
        self.assertTrue(is_due_at(tmpl, _at(2024, 1, 15, 9, 0)))  # Monday
        self.assertFalse(is_due_at(tmpl, _at(2024, 1, 16, 9, 0)))  # Tuesday
        self.assertTrue(is_due_at(tmpl, _at(2024, 1, 17, 9, 0)))  # Wednesday

    def test_weekly_without_days_never_due(self) -> None:
        tmpl = _template(RecurrenceType.WEEKLY, _at(2024, 1, 8, 9, 0), days=[])
        self.assertFalse(is_due_at(tmpl, _at(2024, 1, 15, 9, 0)))

    def test_monthly_and_missing_deadline_never_due(self) -> None:
        self.assertFalse(is_due_at(_template(RecurrenceType.MONTHLY, _at(2024, 1, 10, 9, 0)), _at(2024, 2, 10, 9, 0)))
        self.assertFalse(is_due_at(_template(RecurrenceType.DAILY, None), _at(2024, 2, 10, 0, 0)))

    def test_naive_moment_is_server_local(self) -> None:
        tmpl = _template(RecurrenceType.DAILY, datetime(2024, 1, 10, 9, 0))
        self.assertTrue(is_due_at(tmpl, datetime(2024, 1, 12, 9, 0)))


class TestOccurrence(unittest.TestCase):
    def test_occurrence_moment_uses_template_time(self) -> None:
        tmpl = _template(RecurrenceType.DAILY, _at(2024, 1, 10, 9, 30))
        self.assertEqual(occurrence_moment(tmpl, date(2024, 3, 1)), _at(2024, 3, 1, 9, 30))

    def test_day_window_covers_whole_day(self) -> None:
        start, end = day_window(date(2024, 1, 10))
        self.assertEqual(start, _at(2024, 1, 10, 0, 0))
        self.assertEqual((end.hour, end.minute, end.second), (23, 59, 59))
        self.assertEqual(end.date(), date(2024, 1, 10))

    def test_next_occurrence_steps(self) -> None:
        base = _at(2024, 1, 10, 9, 0)
        self.assertEqual(next_occurrence(base, RecurrenceType.DAILY), _at(2024, 1, 11, 9, 0))
        self.assertEqual(next_occurrence(base, RecurrenceType.WEEKLY), _at(2024, 1, 17, 9, 0))
        self.assertEqual(next_occurrence(base, RecurrenceType.MONTHLY), _at(2024, 2, 10, 9, 0))

    def test_monthly_clamps_to_month_end(self) -> None:
        self.assertEqual(next_occurrence(_at(2024, 1, 31, 9, 0), RecurrenceType.MONTHLY), _at(2024, 2, 29, 9, 0))
        self.assertEqual(next_occurrence(_at(2024, 12, 15, 9, 0), RecurrenceType.MONTHLY), _at(2025, 1, 15, 9, 0))


class TestValidateRecurrence(unittest.TestCase):
    def test_none_is_one_off(self) -> None:
        self.assertIsNone(validate_recurrence(None, [1, 2], creating=True))

    def test_weekly_needs_days(self) -> None:
        for days in (None, []):
            with self.subTest(days=days):
                with self.assertRaises(RecurrenceValidationError):
                    validate_recurrence(RecurrenceType.WEEKLY, days, creating=True)

    def test_weekly_rejects_out_of_range_days(self) -> None:
        with self.assertRaises(RecurrenceValidationError):
            validate_recurrence(RecurrenceType.WEEKLY, [1, 7], creating=True)

    def test_weekly_days_are_sorted_and_unique(self) -> None:
        self.assertEqual(validate_recurrence(RecurrenceType.WEEKLY, [3, 1, 3], creating=True), [1, 3])

    def test_daily_ignores_days(self) -> None:
        self.assertIsNone(validate_recurrence(RecurrenceType.DAILY, [1], creating=True))

    def test_monthly_only_allowed_on_update(self) -> None:
        with self.assertRaises(RecurrenceValidationError):
            validate_recurrence(RecurrenceType.MONTHLY, None, creating=True)
        self.assertIsNone(validate_recurrence(RecurrenceType.MONTHLY, None, creating=False))


if __name__ == "__main__":
    unittest.main()
