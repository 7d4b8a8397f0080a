import asyncio
import unittest
import unittest.mock
from datetime import datetime

from taskline.jobs import recurring_tasks
from taskline.jobs.recurring_tasks import sweep_recurring_tasks
from taskline.jobs.scheduler import RecurringTaskScheduler
from taskline.models.enums import RecurrenceType
from taskline.models.task import Task
from taskline.services.clock import to_local
from tests.utils import DatabaseTestCase, local


class TestSweepRecurringTasks(DatabaseTestCase):
    async def test_daily_tick_creates_single_instance(self) -> None:
        tmpl = await self.make_template(local(2024, 1, 10, 9, 0))

        created = await sweep_recurring_tasks(session_factory=self.sessions, now=local(2024, 1, 11, 9, 0))
        repeated = await sweep_recurring_tasks(session_factory=self.sessions, now=local(2024, 1, 11, 9, 0))

        self.assertEqual(created, 1)
        self.assertEqual(repeated, 0)
        instances = await self.instances_of(tmpl.id)
        self.assertEqual(len(instances), 1)
        self.assertEqual(to_local(instances[0].deadline), local(2024, 1, 11, 9, 0))

    async def test_off_minute_tick_creates_nothing(self) -> None:
        tmpl = await self.make_template(local(2024, 1, 10, 9, 0))
        self.assertEqual(await sweep_recurring_tasks(session_factory=self.sessions, now=local(2024, 1, 11, 9, 1)), 0)
        self.assertEqual(await self.instances_of(tmpl.id), [])

    async def test_weekly_respects_selected_days(self) -> None:
        tmpl = await self.make_template(local(2024, 1, 8, 9, 0), RecurrenceType.WEEKLY, [1, 3])

        tuesday = await sweep_recurring_tasks(session_factory=self.sessions, now=local(2024, 1, 16, 9, 0))
        monday = await sweep_recurring_tasks(session_factory=self.sessions, now=local(2024, 1, 15, 9, 0))

        self.assertEqual(tuesday, 0)
        self.assertEqual(monday, 1)
        self.assertEqual(len(await self.instances_of(tmpl.id)), 1)

    async def test_monthly_and_instances_are_ignored(self) -> None:
        monthly = await self.make_template(local(2024, 1, 10, 9, 0), RecurrenceType.MONTHLY)
        await self.make_task(deadline=local(2024, 1, 10, 9, 0))
        self.assertEqual(await sweep_recurring_tasks(session_factory=self.sessions, now=local(2024, 2, 10, 9, 0)), 0)
        self.assertEqual(await self.instances_of(monthly.id), [])

    async def test_failing_template_does_not_block_others(self) -> None:
        broken = await self.make_template(local(2024, 1, 10, 9, 0), title="Broken")
        healthy = await self.make_template(local(2024, 1, 10, 9, 0), title="Healthy")
        real = recurring_tasks.materialize_instance

        async def flaky(db, template, occurrence, *, now=None):
            if template.id == broken.id:
                raise RuntimeError("boom")
            return await real(db, template, occurrence, now=now)

        with unittest.mock.patch.object(recurring_tasks, "materialize_instance", flaky):
            with self.assertLogs("taskline.jobs.recurring_tasks", level="ERROR") as logs:
                created = await sweep_recurring_tasks(session_factory=self.sessions, now=local(2024, 1, 11, 9, 0))

        self.assertEqual(created, 1)
        self.assertEqual(len(await self.instances_of(healthy.id)), 1)
        self.assertEqual(await self.instances_of(broken.id), [])
        self.assertIn(str(broken.id), "\n".join(logs.output))

    async def test_slow_template_times_out(self) -> None:
        slow = await self.make_template(local(2024, 1, 10, 9, 0), title="Slow")
        fast = await self.make_template(local(2024, 1, 10, 9, 0), title="Fast")
        real = recurring_tasks.materialize_instance

        async def sluggish(db, template, occurrence, *, now=None):
            if template.id == slow.id:
                await asyncio.sleep(5)
            return await real(db, template, occurrence, now=now)

        with unittest.mock.patch.object(recurring_tasks, "materialize_instance", sluggish):
            with self.assertLogs("taskline.jobs.recurring_tasks", level="ERROR"):
                created = await sweep_recurring_tasks(
                    session_factory=self.sessions,
                    now=local(2024, 1, 11, 9, 0),
                    template_timeout=0.05,
                )

        self.assertEqual(created, 1)
        self.assertEqual(len(await self.instances_of(fast.id)), 1)

    async def test_template_deleted_after_listing_is_skipped(self) -> None:
        tmpl = await self.make_template(local(2024, 1, 10, 9, 0))
        real = recurring_tasks._materialize_for_template

        async def delete_then_materialize(session_factory, template_id, now):
            async with session_factory() as db:
                await db.delete(await db.get(Task, template_id))
                await db.commit()
            return await real(session_factory, template_id, now)

        with unittest.mock.patch.object(recurring_tasks, "_materialize_for_template", delete_then_materialize):
            created = await sweep_recurring_tasks(session_factory=self.sessions, now=local(2024, 1, 11, 9, 0))

        self.assertEqual(created, 0)
        self.assertEqual(await self.instances_of(tmpl.id), [])


class TestRecurringTaskScheduler(DatabaseTestCase):
    async def test_tick_runs_sweep_at_clock_time(self) -> None:
        tmpl = await self.make_template(local(2024, 1, 10, 9, 0))
        scheduler = RecurringTaskScheduler(session_factory=self.sessions, clock=lambda: local(2024, 1, 11, 9, 0))

        self.assertEqual(await scheduler.tick(), 1)
        self.assertEqual(await scheduler.tick(), 0)
        self.assertEqual(len(await self.instances_of(tmpl.id)), 1)

    async def test_tick_swallows_sweep_failure(self) -> None:
        scheduler = RecurringTaskScheduler(session_factory=self.sessions, clock=lambda: local(2024, 1, 11, 9, 0))
        failing = unittest.mock.AsyncMock(side_effect=RuntimeError("db down"))
        with unittest.mock.patch("taskline.jobs.scheduler.sweep_recurring_tasks", failing):
            with self.assertLogs("taskline.jobs.scheduler", level="ERROR"):
                self.assertEqual(await scheduler.tick(), 0)

    async def test_seconds_until_next_tick_aligns_to_minute(self) -> None:
        scheduler = RecurringTaskScheduler(session_factory=self.sessions)
        self.assertEqual(scheduler.seconds_until_next_tick(datetime(2024, 1, 11, 9, 0, 45)), 15.0)
        self.assertEqual(scheduler.seconds_until_next_tick(datetime(2024, 1, 11, 9, 0, 0)), 60.0)

    async def test_start_and_stop(self) -> None:
        delays = []
        blocker = asyncio.Event()

        async def fake_sleep(seconds: float) -> None:
            delays.append(seconds)
            await blocker.wait()

        scheduler = RecurringTaskScheduler(
            session_factory=self.sessions,
            clock=lambda: local(2024, 1, 11, 8, 59),
            sleep=fake_sleep,
        )
        scheduler.start()
        await asyncio.sleep(0)
        self.assertTrue(scheduler.running)
        self.assertEqual(delays, [60.0])

        await scheduler.stop()
        self.assertFalse(scheduler.running)


if __name__ == "__main__":
    unittest.main()
