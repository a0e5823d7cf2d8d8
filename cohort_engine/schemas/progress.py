from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import enum

from cohort_engine.schemas.common import UTCDateTime

class LessonProgress(BaseModel):
    user_id: str
    lesson_id: str
    course_id: str
    is_completed: bool = False
    watched_percentage: float = Field(0, ge=0, le=100)
    completed_at: Optional[UTCDateTime] = None
    last_watched_at: Optional[UTCDateTime] = None

class ProgressUpdate(BaseModel):
    course_id: str
    watched_percentage: Optional[float] = Field(None, ge=0, le=100)
    is_completed: Optional[bool] = None

class VideoProgress(BaseModel):
    course_id: str
    current_time: float = Field(0, ge=0)
    duration: float = Field(0, ge=0)
    percentage: float = Field(..., ge=0, le=100)

class StreakData(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    total_completed: int = 0
    last_completed_date: Optional[datetime] = None

class EnrollmentStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"

class Enrollment(BaseModel):
    id: Optional[str] = None
    user_id: str
    course_id: str
    cohort_id: str
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    enrolled_at: UTCDateTime
    completed_at: Optional[UTCDateTime] = None
