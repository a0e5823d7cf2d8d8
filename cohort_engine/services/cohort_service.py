import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from cohort_engine.core.clock import Clock, system_clock
from cohort_engine.core.exceptions import (
    CohortNotFoundException,
    CouponNotFoundException,
    DuplicateCouponException,
    InvalidCohortDatesException,
    InvalidCouponException,
)
from cohort_engine.crud import cohort as crud_cohort
from cohort_engine.schemas.cohort import (
    Cohort,
    CohortCreate,
    CohortResponse,
    CohortStatus,
    CohortUpdate,
    Coupon,
    CouponUpdate,
)
from cohort_engine.schemas.pricing import PricingDisplay, PricingResult
from cohort_engine.services.pricing_service import compute_price, is_coupon_usable
from cohort_engine.services.release_service import ReleaseScheduler

logger = logging.getLogger(__name__)

WEEK = timedelta(days=7)

def derive_cohort_status(
    now: datetime,
    start_date: datetime,
    end_date: datetime,
    is_cancelled: bool = False
) -> CohortStatus:
    """Статус когорты вычисляется при чтении; хранится только отмена"""
    if is_cancelled:
        return CohortStatus.CANCELLED
    if now >= end_date:
        return CohortStatus.COMPLETED
    if now >= start_date:
        return CohortStatus.ACTIVE
    return CohortStatus.UPCOMING

def current_week(now: datetime, start_date: datetime) -> int:
    """Номер текущей недели когорты, начиная с нуля"""
    return max(0, (now - start_date) // WEEK)

class CohortService:
    def __init__(self, db: Session, clock: Clock = system_clock, scheduler: ReleaseScheduler = None):
        self.db = db
        self.clock = clock
        self.scheduler = scheduler or ReleaseScheduler(db)

    # === Жизненный цикл когорты ===
    def create_cohort(self, cohort_data: CohortCreate) -> Cohort:
        cohort = Cohort(
            id=uuid.uuid4().hex,
            current_students=0,
            is_cancelled=False,
            created_at=datetime.now(timezone.utc),
            **cohort_data.model_dump()
        )
        cohort = crud_cohort.save_cohort(self.db, cohort)
        logger.info(f"Cohort {cohort.id} created for course {cohort.course_id}")

        self.scheduler.schedule_releases(
            cohort.id,
            cohort.course_id,
            cohort.start_date,
            release_time=cohort.weekly_release_time
        )
        return cohort

    def get_cohort(self, cohort_id: str) -> Cohort:
        cohort = crud_cohort.get_cohort(self.db, cohort_id)
        if not cohort:
            raise CohortNotFoundException(cohort_id)
        return cohort

    def to_response(self, cohort: Cohort) -> CohortResponse:
        now = self.clock.now()
        return CohortResponse(
            **cohort.model_dump(),
            status=derive_cohort_status(now, cohort.start_date, cohort.end_date, cohort.is_cancelled),
            current_week=current_week(now, cohort.start_date),
        )

    def list_cohorts(self, course_id: Optional[str] = None, status: Optional[CohortStatus] = None) -> List[CohortResponse]:
        cohorts = [self.to_response(cohort) for cohort in crud_cohort.get_cohorts(self.db, course_id)]
        if status:
            cohorts = [cohort for cohort in cohorts if cohort.status == status]
        cohorts.sort(key=lambda cohort: cohort.start_date, reverse=True)
        return cohorts

    def update_cohort(self, cohort_id: str, cohort_update: CohortUpdate) -> Cohort:
        """Обновление когорты; уже созданные записи выхода уроков не пересчитываются"""
        cohort = self.get_cohort(cohort_id)
        update_data = cohort_update.model_dump(exclude_unset=True)
        updated = Cohort.model_validate({**cohort.model_dump(), **update_data})

        if updated.start_date >= updated.end_date:
            raise InvalidCohortDatesException()

        if "start_date" in update_data and updated.start_date != cohort.start_date:
            logger.warning(
                f"Start date of cohort {cohort_id} changed; existing release records keep their dates"
            )
        return crud_cohort.save_cohort(self.db, updated)

    def cancel_cohort(self, cohort_id: str) -> Cohort:
        cohort = self.get_cohort(cohort_id)
        cohort.is_cancelled = True
        logger.info(f"Cohort {cohort_id} cancelled")
        return crud_cohort.save_cohort(self.db, cohort)

    def get_current_week(self, cohort: Cohort) -> int:
        return current_week(self.clock.now(), cohort.start_date)

    # === Купоны ===
    def _find_coupon_index(self, cohort: Cohort, code: str) -> int:
        for index, coupon in enumerate(cohort.coupons):
            if coupon.code.strip().lower() == code.strip().lower():
                return index
        raise CouponNotFoundException(code)

    def add_coupon(self, cohort_id: str, coupon: Coupon) -> Cohort:
        cohort = self.get_cohort(cohort_id)
        code = coupon.code.strip().lower()
        if any(existing.code.strip().lower() == code for existing in cohort.coupons):
            raise DuplicateCouponException(coupon.code)
        cohort.coupons = cohort.coupons + [coupon]
        return crud_cohort.save_cohort(self.db, cohort)

    def update_coupon(self, cohort_id: str, code: str, coupon_update: CouponUpdate) -> Cohort:
        cohort = self.get_cohort(cohort_id)
        index = self._find_coupon_index(cohort, code)
        coupons = list(cohort.coupons)
        try:
            coupons[index] = Coupon.model_validate({
                **coupons[index].model_dump(),
                **coupon_update.model_dump(exclude_unset=True)
            })
        except ValidationError as e:
            raise InvalidCouponException(
                "; ".join(error["msg"] for error in e.errors())
            )
        cohort.coupons = coupons
        return crud_cohort.save_cohort(self.db, cohort)

    def remove_coupon(self, cohort_id: str, code: str) -> Cohort:
        cohort = self.get_cohort(cohort_id)
        index = self._find_coupon_index(cohort, code)
        cohort.coupons = cohort.coupons[:index] + cohort.coupons[index + 1:]
        return crud_cohort.save_cohort(self.db, cohort)

    # === Цены ===
    def get_cohort_pricing(self, cohort_id: str, coupon_code: Optional[str] = None) -> PricingResult:
        cohort = self.get_cohort(cohort_id)
        return compute_price(cohort.pricing, self.clock.now(), coupon_code, cohort.coupons)

    def get_pricing_display(self, cohort_id: str) -> PricingDisplay:
        cohort = self.get_cohort(cohort_id)
        now = self.clock.now()
        pricing = cohort.pricing
        return PricingDisplay(
            base_price=pricing.base_price,
            special_offer=pricing.special_offer,
            currency=pricing.currency,
            is_free=pricing.is_free,
            tier=pricing.tier,
            early_bird_discount=pricing.early_bird_discount,
            available_coupons=sum(1 for coupon in cohort.coupons if is_coupon_usable(coupon, now)),
        )
