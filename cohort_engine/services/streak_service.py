from datetime import datetime
from typing import Iterable

from cohort_engine.config import settings
from cohort_engine.schemas.progress import StreakData
from cohort_engine.utils.timeutils import ensure_utc

SECONDS_PER_DAY = 24 * 60 * 60

def days_between(earlier: datetime, later: datetime) -> int:
    """Число полных суток между двумя моментами"""
    return int((later - earlier).total_seconds() // SECONDS_PER_DAY)

def compute_streak(completed_at: Iterable[datetime], now: datetime, window_days: int = None) -> StreakData:
    """Серия: завершения уроков с разрывом не больше window_days дней.

    Текущая серия обнуляется, если с последнего завершения прошло больше
    window_days дней; самая длинная серия при этом сохраняется.
    """
    if window_days is None:
        window_days = settings.STREAK_WINDOW_DAYS

    dates = sorted(ensure_utc(value) for value in completed_at)
    if not dates:
        return StreakData()

    running = 0
    longest = 0
    previous = None
    for current in dates:
        if previous is None or days_between(previous, current) > window_days:
            running = 1
        else:
            running += 1
        longest = max(longest, running)
        previous = current

    last_completed = dates[-1]
    current_streak = running if days_between(last_completed, ensure_utc(now)) <= window_days else 0

    return StreakData(
        current_streak=current_streak,
        longest_streak=longest,
        total_completed=len(dates),
        last_completed_date=last_completed,
    )
