from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    DATABASE_URL: str
    REDIS_URL: str = "redis://localhost:6379/0"

    ADMIN_EMAIL: str | None = None
    ADMIN_NAME: str | None = None
    ADMIN_PASSWORD: str | None = None

    JWT_SECRET: str
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30

    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Server-local zone used for occurrence days and the sweep's time-of-day gate.
    TIMEZONE: str = "UTC"

    RECURRING_SCHEDULER_ENABLED: bool = True
    RECURRING_TEMPLATE_TIMEOUT_SECONDS: float = 10.0

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
