from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskline.db import SessionLocal
from taskline.jobs.recurring_tasks import sweep_recurring_tasks
from taskline.services.clock import local_now


logger = logging.getLogger(__name__)


class RecurringTaskScheduler:
    """
    Runs the recurring sweep on minute boundaries inside the running event loop.

    ``clock`` and ``sleep`` are injectable so tests can drive ticks without waiting on
    wall-clock time; ``tick()`` runs a single sweep directly.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession] = SessionLocal,
        clock: Callable[[], datetime] = local_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        interval_seconds: float = 60.0,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._sleep = sleep
        self._interval = interval_seconds
        self._loop_task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        if self.running:
            return
        self._loop_task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Recurring task scheduler started (every %.0fs)", self._interval)

    async def stop(self) -> None:
        tasks = [t for t in (self._loop_task, *self._inflight) if t is not None]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
        self._inflight.clear()
        logger.info("Recurring task scheduler stopped")

    async def tick(self) -> int:
        now = self._clock()
        try:
            return await sweep_recurring_tasks(session_factory=self._session_factory, now=now)
        except Exception:
            logger.exception("Recurring task sweep failed at %s", now.isoformat())
            return 0

    def seconds_until_next_tick(self, now: datetime) -> float:
        elapsed = (now.second + now.microsecond / 1_000_000) % self._interval
        return self._interval - elapsed

    async def _run(self) -> None:
        while True:
            await self._sleep(self.seconds_until_next_tick(self._clock()))
            # A slow sweep must not push the next tick off its minute.
            task = asyncio.create_task(self.tick())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
