from fastapi import APIRouter
from cohort_engine.api.v1.endpoints import cohorts, lessons, progress, community

api_router = APIRouter()

api_router.include_router(cohorts.router, prefix="/cohorts", tags=["Cohorts"])
api_router.include_router(lessons.router, prefix="/lessons", tags=["Lessons"])
api_router.include_router(progress.router, prefix="/progress", tags=["Progress"])
api_router.include_router(community.router, prefix="/community", tags=["Community"])
