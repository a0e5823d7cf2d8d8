from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from cohort_engine.database import get_db
from cohort_engine.api.dependencies import get_clock
from cohort_engine.core.clock import Clock
from cohort_engine.schemas.community import (
    CommunityStats,
    UserActivity,
    UserStatusUpdate,
    Question,
    QuestionCreate,
    QuestionAnswer
)
from cohort_engine.services.community_service import CommunityService
from cohort_engine.services.question_service import QuestionService

router = APIRouter()

def get_question_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> QuestionService:
    return QuestionService(db, clock)

@router.get("/stats", response_model=CommunityStats)
async def read_community_stats(
    cohort_id: Optional[str] = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Сводка активности сообщества; при сбоях метрики равны нулю"""
    return CommunityService(db, clock).get_community_stats(cohort_id)

@router.post("/activity", response_model=UserActivity)
async def update_activity(
    status: UserStatusUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    return CommunityService(db, clock).update_user_status(status)

# === Вопросы ===
@router.post("/questions", response_model=Question, status_code=201)
async def create_question(
    question: QuestionCreate,
    service: QuestionService = Depends(get_question_service)
):
    """Задать вопрос к уроку"""
    return service.create_question(question)

@router.get("/questions/lesson/{lesson_id}", response_model=List[Question])
async def read_lesson_questions(
    lesson_id: str,
    include_private: bool = False,
    service: QuestionService = Depends(get_question_service)
):
    return service.get_lesson_questions(lesson_id, include_private)

@router.get("/questions/course/{course_id}", response_model=List[Question])
async def read_recent_course_questions(
    course_id: str,
    limit: int = 5,
    service: QuestionService = Depends(get_question_service)
):
    """Последние публичные вопросы курса"""
    return service.get_recent_course_questions(course_id, limit)

@router.post("/questions/{question_id}/answer", response_model=Question)
async def answer_question(
    question_id: str,
    answer: QuestionAnswer,
    service: QuestionService = Depends(get_question_service)
):
    return service.answer_question(question_id, answer.answer)
