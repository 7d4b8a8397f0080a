from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from taskline.config import settings


def server_zone() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def local_now() -> datetime:
    return datetime.now(server_zone())


def to_local(value: datetime) -> datetime:
    """
    Express ``value`` in the server zone.

    Naive values are taken to already be server-local wall-clock time; SQLite hands
    timestamps back that way.
    """
    zone = server_zone()
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)
