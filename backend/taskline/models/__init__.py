from taskline.models.audit_log import AuditLog
from taskline.models.project import Project
from taskline.models.project_member import ProjectMember
from taskline.models.task import Task
from taskline.models.user import User

__all__ = [
    "AuditLog",
    "Project",
    "ProjectMember",
    "Task",
    "User",
]
