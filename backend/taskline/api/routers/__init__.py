from fastapi import APIRouter

from taskline.api.routers.auth import router as auth_router
from taskline.api.routers.projects import router as projects_router
from taskline.api.routers.tasks import router as tasks_router


api_router = APIRouter()
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(projects_router, prefix="/projects", tags=["projects"])
api_router.include_router(tasks_router, prefix="/tasks", tags=["tasks"])
