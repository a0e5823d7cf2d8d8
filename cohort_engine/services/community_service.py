import logging
from datetime import timedelta
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from cohort_engine.config import settings
from cohort_engine.core.clock import Clock, system_clock
from cohort_engine.crud import cohort as crud_cohort
from cohort_engine.crud import document as crud_document
from cohort_engine.crud import lesson as crud_lesson
from cohort_engine.schemas.community import (
    CommunityStats,
    EngagementTier,
    Question,
    UserActivity,
    UserStatusUpdate,
)
from cohort_engine.schemas.progress import LessonProgress
from cohort_engine.services.cohort_service import current_week
from cohort_engine.services.enrollment_service import EnrollmentService
from cohort_engine.utils.timeutils import local_midnight, resolve_timezone

logger = logging.getLogger(__name__)

HIGH_ENGAGEMENT_SCORE = 50
MEDIUM_ENGAGEMENT_SCORE = 20

def classify_engagement(questions_last_week: int, hot_streak: int, community_buzz: int) -> EngagementTier:
    score = questions_last_week + hot_streak + community_buzz
    if score >= HIGH_ENGAGEMENT_SCORE:
        return EngagementTier.HIGH
    if score >= MEDIUM_ENGAGEMENT_SCORE:
        return EngagementTier.MEDIUM
    return EngagementTier.LOW

class CommunityService:
    """Сводная статистика сообщества для панели студента.

    Каждая метрика считается независимо: ошибка одного запроса дает 0 для
    этой метрики, а не прерывает всю сводку.
    """

    def __init__(self, db: Session, clock: Clock = system_clock):
        self.db = db
        self.clock = clock
        self.enrollments = EnrollmentService(db, clock)

    # === Активность пользователей ===
    def update_user_status(self, status: UserStatusUpdate) -> UserActivity:
        activity = UserActivity(
            user_id=status.user_id,
            last_seen=self.clock.now(),
            is_online=status.is_online,
            current_lesson=status.current_lesson,
        )
        existing = crud_document.get_document(self.db, crud_document.USER_ACTIVITY, status.user_id)
        if existing and not status.current_lesson:
            activity.current_lesson = existing.get("current_lesson")
        crud_document.set_document(
            self.db, crud_document.USER_ACTIVITY, status.user_id, activity.model_dump(mode="json")
        )
        return activity

    def _online_activity(self) -> List[UserActivity]:
        since = self.clock.now() - timedelta(minutes=settings.ONLINE_WINDOW_MINUTES)
        documents = crud_document.query_documents(
            self.db, crud_document.USER_ACTIVITY, {"is_online": True}
        )
        activities = [UserActivity.model_validate(data) for data in documents]
        return [activity for activity in activities if activity.last_seen > since]

    def _questions_since(self, delta: timedelta) -> int:
        since = self.clock.now() - delta
        documents = crud_document.query_documents(self.db, crud_document.QUESTIONS)
        return sum(1 for data in documents if Question.model_validate(data).created_at > since)

    def _member_progress(self, member_ids: List[str], course_id: str) -> List[LessonProgress]:
        members = set(member_ids)
        documents = crud_document.query_documents(
            self.db, crud_document.LESSON_PROGRESS, {"course_id": course_id, "is_completed": True}
        )
        progress = [LessonProgress.model_validate(data) for data in documents]
        return [item for item in progress if item.user_id in members]

    # === Метрики ===
    def get_academy_users_online(self) -> int:
        return len(self._online_activity())

    def get_cohort_active_users(self, cohort_id: str) -> int:
        member_ids = set(self.enrollments.get_cohort_member_ids(cohort_id))
        if not member_ids:
            return 0
        return sum(1 for activity in self._online_activity() if activity.user_id in member_ids)

    def get_questions_last_week(self) -> int:
        return self._questions_since(timedelta(days=7))

    def get_community_buzz(self) -> int:
        return self._questions_since(timedelta(hours=24))

    def get_hot_streak(self) -> int:
        """Число разных студентов, завершивших урок сегодня"""
        now = self.clock.now()
        today = local_midnight(now, resolve_timezone(settings.RELEASE_TIMEZONE))
        documents = crud_document.query_documents(
            self.db, crud_document.LESSON_PROGRESS, {"is_completed": True}
        )
        users = set()
        for data in documents:
            progress = LessonProgress.model_validate(data)
            if progress.completed_at and today <= progress.completed_at <= now:
                users.add(progress.user_id)
        return len(users)

    def get_cohort_progress(self, cohort_id: str) -> float:
        cohort = crud_cohort.get_cohort(self.db, cohort_id)
        if not cohort:
            return 0.0
        member_ids = self.enrollments.get_cohort_member_ids(cohort_id)
        lessons = crud_lesson.get_lessons_by_course(self.db, cohort.course_id)
        if not member_ids or not lessons:
            return 0.0

        lesson_ids = {lesson.id for lesson in lessons}
        completed = sum(
            1 for progress in self._member_progress(member_ids, cohort.course_id)
            if progress.lesson_id in lesson_ids
        )
        return completed / (len(lessons) * len(member_ids)) * 100

    def get_weekly_goals(self, cohort_id: str) -> float:
        """Процент студентов, прошедших все уроки текущей недели"""
        cohort = crud_cohort.get_cohort(self.db, cohort_id)
        if not cohort:
            return 0.0
        member_ids = self.enrollments.get_cohort_member_ids(cohort_id)
        if not member_ids:
            return 0.0

        week = current_week(self.clock.now(), cohort.start_date)
        week_lesson_ids = {
            lesson.id for lesson in crud_lesson.get_lessons_by_week(self.db, cohort.course_id, week)
        }
        if not week_lesson_ids:
            return 0.0

        completed_by_user = {}
        for progress in self._member_progress(member_ids, cohort.course_id):
            completed_by_user.setdefault(progress.user_id, set()).add(progress.lesson_id)

        finished = sum(
            1 for user_id in member_ids
            if week_lesson_ids <= completed_by_user.get(user_id, set())
        )
        return finished / len(member_ids) * 100

    def _safe_metric(self, name: str, metric: Callable[[], float], default=0):
        try:
            return metric()
        except Exception:
            logger.exception(f"Community metric {name} failed, reporting {default}")
            # Откат прерванной транзакции перед следующей метрикой
            self.db.rollback()
            return default

    def get_community_stats(self, cohort_id: Optional[str] = None) -> CommunityStats:
        questions_last_week = self._safe_metric("questions_last_week", self.get_questions_last_week)
        hot_streak = self._safe_metric("hot_streak", self.get_hot_streak)
        community_buzz = self._safe_metric("community_buzz", self.get_community_buzz)

        stats = CommunityStats(
            academy_users_online=self._safe_metric("academy_users_online", self.get_academy_users_online),
            questions_last_week=questions_last_week,
            hot_streak=hot_streak,
            community_buzz=community_buzz,
            engagement_score=classify_engagement(questions_last_week, hot_streak, community_buzz),
        )

        if cohort_id:
            stats.cohort_active_users = self._safe_metric(
                "cohort_active_users", lambda: self.get_cohort_active_users(cohort_id)
            )
            stats.cohort_progress = self._safe_metric(
                "cohort_progress", lambda: self.get_cohort_progress(cohort_id), 0.0
            )
            stats.weekly_goals = self._safe_metric(
                "weekly_goals", lambda: self.get_weekly_goals(cohort_id), 0.0
            )
        return stats
