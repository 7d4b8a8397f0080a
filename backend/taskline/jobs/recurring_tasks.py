"""
NOTE:
A template is materialized only on the tick whose (hour, minute) equals its deadline's
local time of day. If the sweep is not running at that minute the day is skipped; there
is no backfill on recovery.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskline.config import settings
from taskline.db import SessionLocal
from taskline.models.task import Task
from taskline.services.clock import local_now, to_local
from taskline.services.recurrence import is_due_at, occurrence_moment
from taskline.services.recurring_instances import materialize_instance
from taskline.services.task_classification import is_recurring_template, sweepable_template_clause


logger = logging.getLogger(__name__)


async def _materialize_for_template(
    session_factory: async_sessionmaker[AsyncSession],
    template_id: uuid.UUID,
    now: datetime,
) -> bool:
    async with session_factory() as db:
        template = await db.get(Task, template_id)
        if template is None or not is_recurring_template(template):
            logger.debug("Recurring template %s is gone; skipping", template_id)
            return False
        if not is_due_at(template, now):
            return False

        occurrence = occurrence_moment(template, now.date())
        instance = await materialize_instance(db, template, occurrence, now=now)
        await db.commit()
        return instance is not None


async def sweep_recurring_tasks(
    *,
    session_factory: async_sessionmaker[AsyncSession] = SessionLocal,
    now: datetime | None = None,
    template_timeout: float | None = None,
) -> int:
    now = to_local(now) if now is not None else local_now()
    timeout = settings.RECURRING_TEMPLATE_TIMEOUT_SECONDS if template_timeout is None else template_timeout

    async with session_factory() as db:
        templates = (await db.execute(select(Task).where(sweepable_template_clause()))).scalars().all()
    due_ids = [tmpl.id for tmpl in templates if is_due_at(tmpl, now)]

    created = 0
    for template_id in due_ids:
        try:
            if await asyncio.wait_for(_materialize_for_template(session_factory, template_id, now), timeout):
                created += 1
        except asyncio.TimeoutError:
            logger.error("Timed out materializing recurring template %s after %.1fs", template_id, timeout)
        except Exception:
            logger.exception("Failed to materialize recurring template %s", template_id)

    if created:
        logger.info("Recurring sweep at %s created %d instance(s)", now.isoformat(), created)
    return created
