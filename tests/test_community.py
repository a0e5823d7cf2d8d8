from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from cohort_engine.crud import document as crud_document
from cohort_engine.schemas.community import EngagementTier, Question, UserStatusUpdate
from cohort_engine.services.cohort_service import CohortService
from cohort_engine.services.community_service import CommunityService, classify_engagement
from cohort_engine.services.enrollment_service import EnrollmentService
from cohort_engine.services.progress_service import ProgressService
from conftest import NOW, make_cohort_data

def ask(db, created_at, user_id="u1"):
    question = Question(
        user_id=user_id,
        lesson_id="l1",
        course_id="course-1",
        question="How long should I hold my breath?",
        created_at=created_at,
    )
    crud_document.create_document(db, crud_document.QUESTIONS, question.model_dump(mode="json"))

def enroll(db, clock, cohort, *user_ids):
    service = EnrollmentService(db, clock)
    for user_id in user_ids:
        service.create_enrollment(user_id, cohort.course_id, cohort.id)

@pytest.mark.parametrize("questions,hot,buzz,tier", [
    (50, 0, 0, EngagementTier.HIGH),
    (30, 10, 10, EngagementTier.HIGH),
    (49, 0, 0, EngagementTier.MEDIUM),
    (20, 0, 0, EngagementTier.MEDIUM),
    (19, 0, 0, EngagementTier.LOW),
    (0, 0, 0, EngagementTier.LOW),
])
def test_engagement_tier_boundaries(questions, hot, buzz, tier):
    assert classify_engagement(questions, hot, buzz) == tier

def test_online_users_use_five_minute_window(db, clock):
    service = CommunityService(db, clock)
    service.update_user_status(UserStatusUpdate(user_id="u1", is_online=True))
    clock.advance(minutes=6)
    service.update_user_status(UserStatusUpdate(user_id="u2", is_online=True))
    service.update_user_status(UserStatusUpdate(user_id="u3", is_online=False))

    assert service.get_academy_users_online() == 1

def test_status_update_keeps_current_lesson(db, clock):
    service = CommunityService(db, clock)
    service.update_user_status(UserStatusUpdate(user_id="u1", is_online=True, current_lesson="l1"))

    activity = service.update_user_status(UserStatusUpdate(user_id="u1", is_online=True))

    assert activity.current_lesson == "l1"
    assert activity.last_seen == NOW

def test_cohort_active_users_counts_members_only(db, clock):
    cohort = CohortService(db, clock).create_cohort(make_cohort_data())
    enroll(db, clock, cohort, "u1", "u2")
    service = CommunityService(db, clock)
    for user_id in ("u1", "u3"):
        service.update_user_status(UserStatusUpdate(user_id=user_id, is_online=True))

    assert service.get_cohort_active_users(cohort.id) == 1

def test_question_counts(db, clock):
    ask(db, NOW - timedelta(hours=2))
    ask(db, NOW - timedelta(days=3))
    ask(db, NOW - timedelta(days=10))
    service = CommunityService(db, clock)

    assert service.get_questions_last_week() == 2
    assert service.get_community_buzz() == 1

def test_hot_streak_counts_distinct_students_today(db, clock):
    progress = ProgressService(db, clock)
    clock.current = NOW - timedelta(days=1)
    progress.complete_lesson("u2", "l1", "course-1")
    clock.current = NOW
    progress.complete_lesson("u1", "l1", "course-1")
    progress.complete_lesson("u1", "l2", "course-1")

    assert CommunityService(db, clock).get_hot_streak() == 1

def test_cohort_progress(db, clock, course_lessons):
    cohort = CohortService(db, clock).create_cohort(make_cohort_data())
    enroll(db, clock, cohort, "u1", "u2", "u3")
    progress = ProgressService(db, clock)
    progress.complete_lesson("u1", course_lessons[0].id, "course-1")
    progress.complete_lesson("u1", course_lessons[1].id, "course-1")
    progress.complete_lesson("u2", course_lessons[0].id, "course-1")
    # Прогресс постороннего студента не учитывается
    progress.complete_lesson("outsider", course_lessons[2].id, "course-1")

    assert CommunityService(db, clock).get_cohort_progress(cohort.id) == pytest.approx(100 / 3)

def test_weekly_goals_require_every_lesson_of_the_week(db, clock, course_lessons):
    cohort = CohortService(db, clock).create_cohort(make_cohort_data(start_date=NOW - timedelta(days=8)))
    enroll(db, clock, cohort, "u1", "u2", "u3")
    progress = ProgressService(db, clock)
    progress.complete_lesson("u1", course_lessons[0].id, "course-1")
    progress.complete_lesson("u1", course_lessons[1].id, "course-1")
    progress.complete_lesson("u2", course_lessons[0].id, "course-1")

    assert CommunityService(db, clock).get_weekly_goals(cohort.id) == pytest.approx(100 / 3)

def test_weekly_goals_in_first_days_of_cohort(db, clock, course_lessons):
    cohort = CohortService(db, clock).create_cohort(make_cohort_data())
    enroll(db, clock, cohort, "u1")
    progress = ProgressService(db, clock)
    for lesson in course_lessons:
        progress.complete_lesson("u1", lesson.id, "course-1")

    # Номер недели считается с нуля, а уроков нулевой недели нет
    assert CommunityService(db, clock).get_weekly_goals(cohort.id) == 0

def test_cohort_metrics_for_unknown_cohort(db, clock):
    service = CommunityService(db, clock)

    assert service.get_cohort_progress("missing") == 0
    assert service.get_weekly_goals("missing") == 0
    assert service.get_cohort_active_users("missing") == 0

def test_failed_metric_degrades_to_zero(db, clock, monkeypatch):
    ask(db, NOW - timedelta(hours=1))
    service = CommunityService(db, clock)

    def broken():
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(service, "get_hot_streak", broken)

    stats = service.get_community_stats()

    assert stats.hot_streak == 0
    assert stats.questions_last_week == 1
    assert stats.community_buzz == 1
    assert stats.engagement_score == EngagementTier.LOW

def test_community_stats_with_cohort(db, clock, course_lessons):
    cohort = CohortService(db, clock).create_cohort(make_cohort_data())
    enroll(db, clock, cohort, "u1")
    ProgressService(db, clock).complete_lesson("u1", course_lessons[0].id, "course-1")
    service = CommunityService(db, clock)
    service.update_user_status(UserStatusUpdate(user_id="u1", is_online=True))

    stats = service.get_community_stats(cohort.id)

    assert stats.academy_users_online == 1
    assert stats.cohort_active_users == 1
    assert stats.hot_streak == 1
    assert stats.cohort_progress == pytest.approx(100 / 3)

def test_failed_metric_rolls_back_session(db, clock, monkeypatch):
    service = CommunityService(db, clock)
    rollbacks = []

    def broken():
        raise OperationalError("SELECT", {}, Exception("current transaction is aborted"))

    monkeypatch.setattr(service, "get_community_buzz", broken)
    monkeypatch.setattr(db, "rollback", lambda: rollbacks.append(True))

    stats = service.get_community_stats()

    assert stats.community_buzz == 0
    assert rollbacks == [True]
