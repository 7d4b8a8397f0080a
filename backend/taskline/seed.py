from __future__ import annotations

import asyncio

from sqlalchemy import select

from taskline.auth.security import get_password_hash
from taskline.config import settings
from taskline.db import SessionLocal
from taskline.models.enums import UserRole
from taskline.models.project import Project
from taskline.models.project_member import ProjectMember
from taskline.models.user import User


DEFAULT_PROJECTS = [
    ("General", "Operations"),
]


async def seed() -> None:
    print("Starting seed process...")
    async with SessionLocal() as db:
        admin = None
        if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
            admin = (
                await db.execute(select(User).where(User.email == settings.ADMIN_EMAIL))
            ).scalar_one_or_none()
            if admin is None:
                print(f"Creating admin user: {settings.ADMIN_EMAIL}")
                admin = User(
                    name=settings.ADMIN_NAME or "Admin",
                    email=settings.ADMIN_EMAIL,
                    role=UserRole.admin,
                    password_hash=get_password_hash(settings.ADMIN_PASSWORD),
                    is_active=True,
                )
                db.add(admin)
                await db.flush()
            else:
                print("Admin user already exists. Skipping creation.")
        else:
            print("WARNING: ADMIN_EMAIL/ADMIN_PASSWORD not set. Skipping admin creation.")

        existing = set((await db.execute(select(Project.name))).scalars().all())
        for name, category in DEFAULT_PROJECTS:
            if name in existing:
                continue
            project = Project(
                name=name,
                category=category,
                initial=name[:1].upper(),
                manager_id=admin.id if admin else None,
                modules=[],
            )
            db.add(project)
            await db.flush()
            if admin is not None:
                db.add(ProjectMember(project_id=project.id, user_id=admin.id))

        await db.commit()
        print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
