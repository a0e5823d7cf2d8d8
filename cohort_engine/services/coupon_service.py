import logging
from sqlalchemy.orm import Session

from cohort_engine.config import settings
from cohort_engine.core.clock import Clock, system_clock
from cohort_engine.crud import cohort as crud_cohort
from cohort_engine.schemas.pricing import CouponValidationResult, RedemptionResult
from cohort_engine.services.pricing_service import (
    INVALID_COUPON_MESSAGE,
    find_valid_coupon,
    get_discount_base,
    minimum_amount_message,
)

logger = logging.getLogger(__name__)

COHORT_NOT_FOUND_MESSAGE = "Cohort not found"

class CouponLedger:
    """Проверка и погашение купонов когорты"""

    def __init__(self, db: Session, clock: Clock = system_clock, max_attempts: int = None):
        self.db = db
        self.clock = clock
        self.max_attempts = max_attempts or settings.COUPON_REDEEM_MAX_ATTEMPTS

    def validate_coupon(self, cohort_id: str, coupon_code: str) -> CouponValidationResult:
        cohort = crud_cohort.get_cohort(self.db, cohort_id)
        if not cohort:
            return CouponValidationResult(is_valid=False, message=COHORT_NOT_FOUND_MESSAGE)

        coupon = find_valid_coupon(cohort.coupons, coupon_code, self.clock.now())
        if not coupon:
            return CouponValidationResult(is_valid=False, message=INVALID_COUPON_MESSAGE)

        base_price = get_discount_base(cohort.pricing)
        if coupon.min_amount and base_price < coupon.min_amount:
            return CouponValidationResult(
                is_valid=False,
                message=minimum_amount_message(coupon.min_amount, cohort.pricing.currency)
            )

        return CouponValidationResult(is_valid=True, message="Coupon is valid", coupon=coupon)

    def redeem(self, cohort_id: str, coupon_code: str) -> RedemptionResult:
        """Увеличивает счетчик использований купона на единицу.

        Запись условная: если документ когорты изменился между чтением и
        записью, купон перечитывается и проверяется заново, поэтому
        current_uses не может превысить max_uses при параллельных погашениях.
        """
        for attempt in range(1, self.max_attempts + 1):
            found = crud_cohort.get_cohort_with_version(self.db, cohort_id)
            if not found:
                return RedemptionResult(success=False, message=COHORT_NOT_FOUND_MESSAGE)
            cohort, version = found

            coupon = find_valid_coupon(cohort.coupons, coupon_code, self.clock.now())
            if not coupon:
                return RedemptionResult(success=False, message=INVALID_COUPON_MESSAGE)

            redeemed = coupon.model_copy(update={"current_uses": coupon.current_uses + 1})
            coupons = [redeemed if c is coupon else c for c in cohort.coupons]
            updated = cohort.model_copy(update={"coupons": coupons})

            if crud_cohort.save_cohort_if_unchanged(self.db, updated, version):
                logger.info(
                    f"Coupon {redeemed.code} redeemed for cohort {cohort_id} "
                    f"({redeemed.current_uses}/{redeemed.max_uses})"
                )
                return RedemptionResult(success=True, message="Coupon applied successfully", coupon=redeemed)

            logger.warning(
                f"Concurrent update of cohort {cohort_id} while redeeming {coupon_code}, "
                f"attempt {attempt}/{self.max_attempts}"
            )

        return RedemptionResult(success=False, message="Coupon redemption conflict, please retry")
