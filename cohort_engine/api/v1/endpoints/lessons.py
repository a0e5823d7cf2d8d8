from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from cohort_engine.database import get_db
from cohort_engine.api.dependencies import get_clock
from cohort_engine.core.clock import Clock
from cohort_engine.core.exceptions import LessonNotFoundException
from cohort_engine.crud import lesson as crud_lesson
from cohort_engine.schemas.lesson import Lesson, LessonCreate, LessonAvailability
from cohort_engine.services.availability_service import AvailabilityChecker

router = APIRouter()

@router.post("/", response_model=Lesson, status_code=201)
async def create_lesson(lesson: LessonCreate, db: Session = Depends(get_db)):
    """Создать урок курса"""
    return crud_lesson.create_lesson(db, lesson)

@router.get("/course/{course_id}", response_model=List[Lesson])
async def read_lessons(course_id: str, db: Session = Depends(get_db)):
    """Уроки курса по неделям"""
    return crud_lesson.get_lessons_by_course(db, course_id)

@router.get("/{lesson_id}", response_model=Lesson)
async def read_lesson(lesson_id: str, db: Session = Depends(get_db)):
    lesson = crud_lesson.get_lesson(db, lesson_id)
    if not lesson:
        raise LessonNotFoundException(lesson_id)
    return lesson

@router.get("/{lesson_id}/availability", response_model=LessonAvailability)
async def read_lesson_availability(
    lesson_id: str,
    cohort_id: str,
    timezone: Optional[str] = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Открыт ли урок для студента когорты"""
    return AvailabilityChecker(db, clock).get_availability(lesson_id, cohort_id, timezone)
