import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from cohort_engine.config import settings
from cohort_engine.core.clock import Clock, system_clock
from cohort_engine.crud import document as crud_document
from cohort_engine.schemas.progress import LessonProgress, ProgressUpdate, StreakData, VideoProgress
from cohort_engine.services.streak_service import compute_streak

logger = logging.getLogger(__name__)

def progress_id(user_id: str, lesson_id: str) -> str:
    return f"{user_id}_{lesson_id}"

class ProgressService:
    def __init__(self, db: Session, clock: Clock = system_clock):
        self.db = db
        self.clock = clock

    def get_lesson_progress(self, user_id: str, lesson_id: str) -> Optional[LessonProgress]:
        data = crud_document.get_document(
            self.db, crud_document.LESSON_PROGRESS, progress_id(user_id, lesson_id)
        )
        if not data:
            return None
        return LessonProgress.model_validate(data)

    def update_lesson_progress(
        self,
        user_id: str,
        lesson_id: str,
        update: ProgressUpdate
    ) -> LessonProgress:
        """Обновление прогресса; пройденный урок остается пройденным"""
        now = self.clock.now()
        progress = self.get_lesson_progress(user_id, lesson_id) or LessonProgress(
            user_id=user_id,
            lesson_id=lesson_id,
            course_id=update.course_id,
        )

        changes = {"last_watched_at": now, "course_id": update.course_id}
        if update.watched_percentage is not None:
            changes["watched_percentage"] = update.watched_percentage

        if update.is_completed and not progress.is_completed:
            changes["is_completed"] = True
            changes["completed_at"] = now
            logger.info(f"User {user_id} completed lesson {lesson_id}")

        progress = progress.model_copy(update=changes)
        crud_document.set_document(
            self.db,
            crud_document.LESSON_PROGRESS,
            progress_id(user_id, lesson_id),
            progress.model_dump(mode="json")
        )
        return progress

    def complete_lesson(
        self,
        user_id: str,
        lesson_id: str,
        course_id: str,
        watched_percentage: float = 100
    ) -> LessonProgress:
        return self.update_lesson_progress(user_id, lesson_id, ProgressUpdate(
            course_id=course_id,
            watched_percentage=watched_percentage,
            is_completed=True,
        ))

    def update_video_progress(self, user_id: str, lesson_id: str, video: VideoProgress) -> LessonProgress:
        # Урок засчитывается после просмотра порогового процента видео
        is_completed = video.percentage >= settings.VIDEO_COMPLETION_THRESHOLD
        return self.update_lesson_progress(user_id, lesson_id, ProgressUpdate(
            course_id=video.course_id,
            watched_percentage=video.percentage,
            is_completed=is_completed,
        ))

    def get_user_course_progress(self, user_id: str, course_id: str) -> List[LessonProgress]:
        documents = crud_document.query_documents(
            self.db,
            crud_document.LESSON_PROGRESS,
            {"user_id": user_id, "course_id": course_id}
        )
        return [LessonProgress.model_validate(data) for data in documents]

    def get_completed_lesson_ids(self, user_id: str, course_id: str) -> set:
        return {
            progress.lesson_id
            for progress in self.get_user_course_progress(user_id, course_id)
            if progress.is_completed
        }

    def get_user_streak(self, user_id: str, course_id: str) -> StreakData:
        documents = crud_document.query_documents(
            self.db,
            crud_document.LESSON_PROGRESS,
            {"user_id": user_id, "course_id": course_id, "is_completed": True}
        )
        completed_at = [
            progress.completed_at
            for progress in (LessonProgress.model_validate(data) for data in documents)
            if progress.completed_at is not None
        ]
        return compute_streak(completed_at, self.clock.now())
