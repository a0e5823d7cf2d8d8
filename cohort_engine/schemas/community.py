from pydantic import BaseModel, Field
from typing import Optional
import enum

from cohort_engine.schemas.common import UTCDateTime

class EngagementTier(str, enum.Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

class CommunityStats(BaseModel):
    academy_users_online: int = 0
    cohort_active_users: int = 0
    questions_last_week: int = 0
    hot_streak: int = 0  # Студенты, завершившие урок сегодня
    community_buzz: int = 0  # Новые вопросы за 24 часа
    cohort_progress: float = 0.0
    engagement_score: EngagementTier = EngagementTier.LOW
    weekly_goals: float = 0.0

class UserActivity(BaseModel):
    user_id: str
    last_seen: UTCDateTime
    is_online: bool = False
    current_lesson: Optional[str] = None

class UserStatusUpdate(BaseModel):
    user_id: str
    is_online: bool
    current_lesson: Optional[str] = None

class QuestionCreate(BaseModel):
    user_id: str
    lesson_id: str
    course_id: str
    question: str = Field(..., min_length=1)
    is_public: bool = True

class Question(QuestionCreate):
    id: Optional[str] = None
    is_answered: bool = False
    answer: Optional[str] = None
    answered_at: Optional[UTCDateTime] = None
    created_at: UTCDateTime

class QuestionAnswer(BaseModel):
    answer: str = Field(..., min_length=1)
