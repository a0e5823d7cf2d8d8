from sqlalchemy.orm import Session
from typing import List, Optional

from cohort_engine.crud import document as crud_document
from cohort_engine.schemas.lesson import Lesson, LessonCreate

def get_lesson(db: Session, lesson_id: str) -> Optional[Lesson]:
    data = crud_document.get_document(db, crud_document.LESSONS, lesson_id)
    if not data:
        return None
    return Lesson.model_validate(data)

def get_lessons_by_course(db: Session, course_id: str) -> List[Lesson]:
    documents = crud_document.query_documents(
        db, crud_document.LESSONS, {"course_id": course_id}
    )
    lessons = [Lesson.model_validate(data) for data in documents]
    lessons.sort(key=lambda lesson: (lesson.week_number, lesson.order))
    return lessons

def get_lessons_by_week(db: Session, course_id: str, week_number: int) -> List[Lesson]:
    documents = crud_document.query_documents(
        db, crud_document.LESSONS, {"course_id": course_id, "week_number": week_number}
    )
    return [Lesson.model_validate(data) for data in documents]

def create_lesson(db: Session, lesson: LessonCreate) -> Lesson:
    lesson_id = crud_document.create_document(
        db, crud_document.LESSONS, lesson.model_dump(mode="json")
    )
    return Lesson(id=lesson_id, **lesson.model_dump())
