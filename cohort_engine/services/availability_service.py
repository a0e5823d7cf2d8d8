import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cohort_engine.config import settings
from cohort_engine.core.clock import Clock, system_clock
from cohort_engine.schemas.lesson import Lesson, LessonAvailability, LessonRelease
from cohort_engine.services.release_service import ReleaseScheduler
from cohort_engine.utils.timeutils import ensure_utc, parse_release_time, resolve_timezone

logger = logging.getLogger(__name__)

def get_learner_release_time(
    release_date: datetime,
    learner_timezone: Optional[str] = None,
    release_time: str = None
) -> datetime:
    """Выход урока в часовом поясе студента: та же календарная дата, release_time по местному времени"""
    if not learner_timezone:
        return ensure_utc(release_date)
    tz = resolve_timezone(learner_timezone)
    clock_time = parse_release_time(release_time or settings.DEFAULT_WEEKLY_RELEASE_TIME)
    local_day = ensure_utc(release_date).astimezone(tz).date()
    return datetime.combine(local_day, clock_time, tzinfo=tz).astimezone(timezone.utc)

def can_access_lesson(
    lesson: Lesson,
    course_lessons: Iterable[Lesson],
    completed_lesson_ids: Set[str],
    time_available: bool
) -> bool:
    """Урок доступен, если он уже вышел и все предыдущие уроки курса пройдены"""
    if not time_available:
        return False
    if lesson.order <= 1:
        return True
    return all(
        other.id in completed_lesson_ids
        for other in course_lessons
        if other.course_id == lesson.course_id and other.order < lesson.order
    )

class AvailabilityChecker:
    def __init__(self, db: Session, clock: Clock = system_clock, scheduler: ReleaseScheduler = None):
        self.db = db
        self.clock = clock
        self.scheduler = scheduler or ReleaseScheduler(db)

    def _load_release(self, lesson_id: str, cohort_id: str) -> Optional[LessonRelease]:
        try:
            release = self.scheduler.get_release(cohort_id, lesson_id)
        except SQLAlchemyError:
            logger.exception(f"Failed to load release for lesson {lesson_id} in cohort {cohort_id}")
            return None
        if not release:
            logger.warning(f"No release record for lesson {lesson_id} in cohort {cohort_id}")
        return release

    def is_available(self, lesson_id: str, cohort_id: str, learner_timezone: Optional[str] = None) -> bool:
        # Без записи о выходе урок закрыт
        release = self._load_release(lesson_id, cohort_id)
        if not release:
            return False
        unlock_at = get_learner_release_time(release.release_date, learner_timezone, release.release_time)
        return self.clock.now() >= unlock_at

    def time_until_release(
        self,
        lesson_id: str,
        cohort_id: str,
        learner_timezone: Optional[str] = None
    ) -> Optional[timedelta]:
        release = self._load_release(lesson_id, cohort_id)
        if not release:
            return None
        unlock_at = get_learner_release_time(release.release_date, learner_timezone, release.release_time)
        return max(timedelta(0), unlock_at - self.clock.now())

    def get_availability(
        self,
        lesson_id: str,
        cohort_id: str,
        learner_timezone: Optional[str] = None
    ) -> LessonAvailability:
        release = self._load_release(lesson_id, cohort_id)
        if not release:
            return LessonAvailability(lesson_id=lesson_id, cohort_id=cohort_id, is_available=False)

        unlock_at = get_learner_release_time(release.release_date, learner_timezone, release.release_time)
        now = self.clock.now()
        remaining = max(timedelta(0), unlock_at - now)
        return LessonAvailability(
            lesson_id=lesson_id,
            cohort_id=cohort_id,
            is_available=now >= unlock_at,
            release_date=release.release_date,
            learner_release_date=unlock_at,
            seconds_until_release=int(remaining.total_seconds()),
        )
