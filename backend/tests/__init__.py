import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("TIMEZONE", "UTC")
os.environ.setdefault("RECURRING_SCHEDULER_ENABLED", "false")
