from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from taskline.api.routers import api_router
from taskline.config import settings
from taskline.jobs.scheduler import RecurringTaskScheduler


logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Taskline", default_response_class=ORJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")

recurring_scheduler = RecurringTaskScheduler()


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.on_event("startup")
async def _startup() -> None:
    if settings.RECURRING_SCHEDULER_ENABLED:
        recurring_scheduler.start()


@app.on_event("shutdown")
async def _shutdown() -> None:
    await recurring_scheduler.stop()
