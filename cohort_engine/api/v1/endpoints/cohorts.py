from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from cohort_engine.database import get_db
from cohort_engine.api.dependencies import get_clock
from cohort_engine.core.clock import Clock
from cohort_engine.schemas.cohort import (
    CohortCreate,
    CohortUpdate,
    CohortResponse,
    CohortStatus,
    Coupon,
    CouponUpdate
)
from cohort_engine.schemas.lesson import LessonRelease
from cohort_engine.schemas.pricing import (
    PricingResult,
    PricingDisplay,
    CouponCodeRequest,
    CouponValidationResult,
    RedemptionResult
)
from cohort_engine.services.cohort_service import CohortService
from cohort_engine.services.coupon_service import CouponLedger
from cohort_engine.services.release_service import ReleaseScheduler

router = APIRouter()

def get_cohort_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> CohortService:
    return CohortService(db, clock)

@router.get("/", response_model=List[CohortResponse])
async def read_cohorts(
    course_id: Optional[str] = None,
    status: Optional[CohortStatus] = None,
    service: CohortService = Depends(get_cohort_service)
):
    """Список когорт с вычисленным статусом"""
    return service.list_cohorts(course_id=course_id, status=status)

@router.post("/", response_model=CohortResponse, status_code=201)
async def create_cohort(
    cohort: CohortCreate,
    service: CohortService = Depends(get_cohort_service)
):
    """Создать когорту и расписание выхода уроков"""
    return service.to_response(service.create_cohort(cohort))

@router.get("/{cohort_id}", response_model=CohortResponse)
async def read_cohort(cohort_id: str, service: CohortService = Depends(get_cohort_service)):
    return service.to_response(service.get_cohort(cohort_id))

@router.put("/{cohort_id}", response_model=CohortResponse)
async def update_cohort(
    cohort_id: str,
    cohort_update: CohortUpdate,
    service: CohortService = Depends(get_cohort_service)
):
    return service.to_response(service.update_cohort(cohort_id, cohort_update))

@router.post("/{cohort_id}/cancel", response_model=CohortResponse)
async def cancel_cohort(cohort_id: str, service: CohortService = Depends(get_cohort_service)):
    return service.to_response(service.cancel_cohort(cohort_id))

@router.get("/{cohort_id}/releases", response_model=List[LessonRelease])
async def read_cohort_releases(
    cohort_id: str,
    db: Session = Depends(get_db),
    service: CohortService = Depends(get_cohort_service)
):
    """Расписание выхода уроков когорты"""
    service.get_cohort(cohort_id)
    return ReleaseScheduler(db).get_cohort_releases(cohort_id)

# === Купоны ===
@router.post("/{cohort_id}/coupons", response_model=CohortResponse, status_code=201)
async def add_coupon(
    cohort_id: str,
    coupon: Coupon,
    service: CohortService = Depends(get_cohort_service)
):
    return service.to_response(service.add_coupon(cohort_id, coupon))

@router.put("/{cohort_id}/coupons/{code}", response_model=CohortResponse)
async def update_coupon(
    cohort_id: str,
    code: str,
    coupon_update: CouponUpdate,
    service: CohortService = Depends(get_cohort_service)
):
    return service.to_response(service.update_coupon(cohort_id, code, coupon_update))

@router.delete("/{cohort_id}/coupons/{code}", response_model=CohortResponse)
async def remove_coupon(
    cohort_id: str,
    code: str,
    service: CohortService = Depends(get_cohort_service)
):
    return service.to_response(service.remove_coupon(cohort_id, code))

@router.post("/{cohort_id}/coupons/validate", response_model=CouponValidationResult)
async def validate_coupon(
    cohort_id: str,
    request: CouponCodeRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Проверить купон без погашения"""
    return CouponLedger(db, clock).validate_coupon(cohort_id, request.code)

@router.post("/{cohort_id}/coupons/redeem", response_model=RedemptionResult)
async def redeem_coupon(
    cohort_id: str,
    request: CouponCodeRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    return CouponLedger(db, clock).redeem(cohort_id, request.code)

# === Цены ===
@router.get("/{cohort_id}/pricing", response_model=PricingResult)
async def read_pricing(
    cohort_id: str,
    coupon_code: Optional[str] = None,
    service: CohortService = Depends(get_cohort_service)
):
    """Итоговая цена с учетом ранней скидки и купона"""
    return service.get_cohort_pricing(cohort_id, coupon_code)

@router.get("/{cohort_id}/pricing/display", response_model=PricingDisplay)
async def read_pricing_display(cohort_id: str, service: CohortService = Depends(get_cohort_service)):
    return service.get_pricing_display(cohort_id)
