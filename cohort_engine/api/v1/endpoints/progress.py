from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from cohort_engine.database import get_db
from cohort_engine.api.dependencies import get_clock
from cohort_engine.core.clock import Clock
from cohort_engine.schemas.progress import LessonProgress, ProgressUpdate, VideoProgress, StreakData
from cohort_engine.services.progress_service import ProgressService

router = APIRouter()

def get_progress_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> ProgressService:
    return ProgressService(db, clock)

@router.put("/{user_id}/lessons/{lesson_id}", response_model=LessonProgress)
async def update_progress(
    user_id: str,
    lesson_id: str,
    update: ProgressUpdate,
    service: ProgressService = Depends(get_progress_service)
):
    return service.update_lesson_progress(user_id, lesson_id, update)

@router.put("/{user_id}/lessons/{lesson_id}/video", response_model=LessonProgress)
async def update_video_progress(
    user_id: str,
    lesson_id: str,
    video: VideoProgress,
    service: ProgressService = Depends(get_progress_service)
):
    """Прогресс просмотра видео"""
    return service.update_video_progress(user_id, lesson_id, video)

@router.post("/{user_id}/lessons/{lesson_id}/complete", response_model=LessonProgress)
async def complete_lesson(
    user_id: str,
    lesson_id: str,
    course_id: str,
    service: ProgressService = Depends(get_progress_service)
):
    return service.complete_lesson(user_id, lesson_id, course_id)

@router.get("/{user_id}/courses/{course_id}", response_model=List[LessonProgress])
async def read_course_progress(
    user_id: str,
    course_id: str,
    service: ProgressService = Depends(get_progress_service)
):
    return service.get_user_course_progress(user_id, course_id)

@router.get("/{user_id}/courses/{course_id}/streak", response_model=StreakData)
async def read_streak(
    user_id: str,
    course_id: str,
    service: ProgressService = Depends(get_progress_service)
):
    """Текущая и самая длинная серия"""
    return service.get_user_streak(user_id, course_id)
