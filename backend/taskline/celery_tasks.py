from __future__ import annotations

import asyncio

from taskline.celery_app import celery_app
from taskline.db import engine
from taskline.jobs.recurring_tasks import sweep_recurring_tasks as _sweep_recurring_tasks


async def _sweep_once() -> int:
    try:
        return await _sweep_recurring_tasks()
    finally:
        # Pooled connections are bound to this asyncio.run() loop.
        await engine.dispose()


@celery_app.task(name="taskline.celery_tasks.sweep_recurring_tasks")
def sweep_recurring_tasks() -> int:
    return asyncio.run(_sweep_once())
