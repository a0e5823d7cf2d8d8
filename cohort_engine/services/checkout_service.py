import logging
from decimal import Decimal
from typing import Dict, Optional, Protocol

from sqlalchemy.orm import Session

from cohort_engine.core.clock import Clock, system_clock
from cohort_engine.core.exceptions import PricingException
from cohort_engine.schemas.pricing import CheckoutSession
from cohort_engine.schemas.progress import Enrollment
from cohort_engine.services.cohort_service import CohortService
from cohort_engine.services.coupon_service import CouponLedger
from cohort_engine.services.enrollment_service import EnrollmentService

logger = logging.getLogger(__name__)

class PaymentGateway(Protocol):
    """Внешний платежный шлюз: по цене создает сессию оплаты и возвращает ее идентификатор"""

    def create_checkout_session(self, amount: Decimal, currency: str, metadata: Dict[str, str]) -> str:
        ...

class CheckoutService:
    def __init__(self, db: Session, gateway: PaymentGateway, clock: Clock = system_clock):
        self.db = db
        self.gateway = gateway
        self.clock = clock
        self.cohorts = CohortService(db, clock)
        self.coupons = CouponLedger(db, clock)
        self.enrollments = EnrollmentService(db, clock)

    def start_checkout(self, cohort_id: str, user_id: str, coupon_code: Optional[str] = None) -> CheckoutSession:
        cohort = self.cohorts.get_cohort(cohort_id)
        pricing = self.cohorts.get_cohort_pricing(cohort_id, coupon_code)
        if pricing.error:
            raise PricingException(pricing.error)

        if pricing.is_free or pricing.final_price == 0:
            return CheckoutSession(
                is_free=True,
                price=Decimal("0"),
                currency=pricing.currency,
                pricing=pricing,
            )

        handle = self.gateway.create_checkout_session(
            pricing.final_price,
            pricing.currency,
            {
                "cohort_id": cohort_id,
                "course_id": cohort.course_id,
                "user_id": user_id,
                "coupon_code": coupon_code or "",
            }
        )
        logger.info(f"Checkout session created for user {user_id} in cohort {cohort_id}")
        return CheckoutSession(
            is_free=False,
            price=pricing.final_price,
            currency=pricing.currency,
            checkout_handle=handle,
            pricing=pricing,
        )

    def confirm_payment(self, cohort_id: str, user_id: str, coupon_code: Optional[str] = None) -> Enrollment:
        """Подтверждение оплаты: погашение купона и запись на когорту.

        Погашение купона и запись независимы; неудачное погашение не
        отменяет оплаченную запись.
        """
        cohort = self.cohorts.get_cohort(cohort_id)
        if coupon_code:
            redemption = self.coupons.redeem(cohort_id, coupon_code)
            if not redemption.success:
                logger.warning(
                    f"Coupon {coupon_code} not redeemed for user {user_id} in cohort {cohort_id}: "
                    f"{redemption.message}"
                )
        return self.enrollments.create_enrollment(user_id, cohort.course_id, cohort_id)
