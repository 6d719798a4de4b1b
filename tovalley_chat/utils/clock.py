from datetime import datetime, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from tovalley_chat.core.config import settings


@lru_cache(maxsize=None)
def chat_zone() -> ZoneInfo:
    return ZoneInfo(settings.time_zone)


def now() -> datetime:
    return datetime.now(chat_zone())


def to_chat_zone(value: datetime) -> datetime:
    # Mongo hands back naive UTC datetimes
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(chat_zone())
