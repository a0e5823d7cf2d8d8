import logging
import re
from datetime import datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

RELEASE_TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')

def ensure_utc(value: datetime) -> datetime:
    """Приводит момент времени к UTC; наивные значения считаются UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def validate_release_time(value: str) -> bool:
    """Проверяет формат времени выхода урока HH:MM"""
    return bool(RELEASE_TIME_PATTERN.match(value or ""))

def parse_release_time(value: str) -> time:
    match = RELEASE_TIME_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Invalid release time '{value}', expected HH:MM")
    return time(int(match.group(1)), int(match.group(2)))

def resolve_timezone(name: Optional[str]) -> ZoneInfo:
    """Возвращает зону по имени IANA; неизвестные имена заменяются на UTC"""
    if not name:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{name}', falling back to UTC")
        return ZoneInfo("UTC")

def local_midnight(now: datetime, tz: ZoneInfo) -> datetime:
    local_now = ensure_utc(now).astimezone(tz)
    return datetime.combine(local_now.date(), time(0, 0), tzinfo=tz)
