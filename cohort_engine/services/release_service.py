import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from cohort_engine.config import settings
from cohort_engine.crud import document as crud_document
from cohort_engine.crud import lesson as crud_lesson
from cohort_engine.schemas.lesson import LessonRelease
from cohort_engine.utils.timeutils import ensure_utc, parse_release_time, resolve_timezone

logger = logging.getLogger(__name__)

def compute_release_date(
    start_date: datetime,
    week_number: int,
    release_time: str = None,
    release_timezone: str = None,
    day_offset: int = None
) -> datetime:
    """Момент выхода урока: старт + смещение + недели, время суток всегда release_time"""
    tz = resolve_timezone(release_timezone or settings.RELEASE_TIMEZONE)
    clock_time = parse_release_time(release_time or settings.DEFAULT_WEEKLY_RELEASE_TIME)
    if day_offset is None:
        day_offset = settings.RELEASE_DAY_OFFSET_DAYS

    release_day = ensure_utc(start_date).astimezone(tz).date() + timedelta(days=day_offset)
    if week_number > 1:
        release_day += timedelta(days=(week_number - 1) * 7)

    # Время суток из start_date отбрасывается
    local_release = datetime.combine(release_day, clock_time, tzinfo=tz)
    return local_release.astimezone(timezone.utc)

class ReleaseScheduler:
    def __init__(self, db: Session, release_timezone: str = None):
        self.db = db
        self.release_timezone = release_timezone or settings.RELEASE_TIMEZONE

    def schedule_releases(
        self,
        cohort_id: str,
        course_id: str,
        start_date: datetime,
        release_time: str = None
    ) -> List[LessonRelease]:
        """Создает записи выхода для всех уроков курса одной пакетной записью.

        Вызывается один раз при создании когорты; повторный вызов создаст
        дубликаты записей.
        """
        lessons = crud_lesson.get_lessons_by_course(self.db, course_id)
        release_time = release_time or settings.DEFAULT_WEEKLY_RELEASE_TIME
        created_at = datetime.now(timezone.utc)

        releases = []
        for lesson in lessons:
            releases.append(LessonRelease(
                id=uuid.uuid4().hex,
                cohort_id=cohort_id,
                lesson_id=lesson.id,
                course_id=course_id,
                week_number=lesson.week_number,
                release_date=compute_release_date(
                    start_date,
                    lesson.week_number,
                    release_time=release_time,
                    release_timezone=self.release_timezone
                ),
                release_time=release_time,
                is_released=False,
                created_at=created_at,
            ))

        crud_document.write_batch(self.db, [
            (crud_document.LESSON_RELEASES, release.id, release.model_dump(mode="json"))
            for release in releases
        ])
        logger.info(f"Scheduled {len(releases)} lesson releases for cohort {cohort_id}")
        return releases

    def get_release(self, cohort_id: str, lesson_id: str) -> Optional[LessonRelease]:
        documents = crud_document.query_documents(
            self.db,
            crud_document.LESSON_RELEASES,
            {"cohort_id": cohort_id, "lesson_id": lesson_id},
            limit=1
        )
        if not documents:
            return None
        return LessonRelease.model_validate(documents[0])

    def get_cohort_releases(self, cohort_id: str) -> List[LessonRelease]:
        documents = crud_document.query_documents(
            self.db, crud_document.LESSON_RELEASES, {"cohort_id": cohort_id}
        )
        releases = [LessonRelease.model_validate(data) for data in documents]
        releases.sort(key=lambda release: release.release_date)
        return releases
