from pydantic import BaseModel, Field
from typing import Optional

from cohort_engine.schemas.common import UTCDateTime

class LessonBase(BaseModel):
    title: str
    week_number: int = Field(1, ge=1)
    order: int = 0  # Порядковый номер урока в курсе
    is_published: bool = False

class LessonCreate(LessonBase):
    course_id: str

class Lesson(LessonCreate):
    id: str

class LessonRelease(BaseModel):
    id: Optional[str] = None
    cohort_id: str
    lesson_id: str
    course_id: str
    week_number: int
    release_date: UTCDateTime
    release_time: Optional[str] = None  # HH:MM выхода по местному времени
    is_released: bool = False  # Справочный флаг, решает сравнение времени
    created_at: Optional[UTCDateTime] = None

class LessonAvailability(BaseModel):
    lesson_id: str
    cohort_id: str
    is_available: bool
    release_date: Optional[UTCDateTime] = None
    learner_release_date: Optional[UTCDateTime] = None
    seconds_until_release: Optional[int] = None
