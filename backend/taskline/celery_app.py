from __future__ import annotations

from celery import Celery
from celery.schedules import crontab

from taskline.config import settings


celery_app = Celery(
    "taskline",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["taskline.celery_tasks"],
)

celery_app.conf.timezone = settings.TIMEZONE
celery_app.conf.task_serializer = "json"
celery_app.conf.result_serializer = "json"
celery_app.conf.accept_content = ["json"]

# Only for deployments that run beat instead of the in-process scheduler
# (RECURRING_SCHEDULER_ENABLED=false); running both just produces no-op ticks.
celery_app.conf.beat_schedule = {
    "sweep-recurring-tasks": {
        "task": "taskline.celery_tasks.sweep_recurring_tasks",
        "schedule": crontab(minute="*"),
    },
}
