"""Расчет цены когорты: ранняя скидка и купон складываются от одной базы.

Модуль не обращается к хранилищу и не читает системное время: момент
``now`` и конфигурация цены всегда передаются явно.
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from cohort_engine.schemas.cohort import Coupon, DiscountType, PricingConfig
from cohort_engine.schemas.pricing import PricingResult

ZERO = Decimal("0")
CENT = Decimal("0.01")

INVALID_COUPON_MESSAGE = "Invalid or expired coupon code"

def round_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)

def minimum_amount_message(min_amount: Decimal, currency: str) -> str:
    return f"Minimum purchase amount of {min_amount} {currency} required for this coupon"

def get_discount_base(pricing: PricingConfig) -> Decimal:
    """Специальное предложение заменяет базовую цену, если оно больше нуля"""
    if pricing.special_offer is not None and pricing.special_offer > 0:
        return pricing.special_offer
    return pricing.base_price

def calculate_reduction(amount: Decimal, value: Decimal, discount_type: DiscountType) -> Decimal:
    if discount_type == DiscountType.PERCENTAGE:
        return round_money(amount * value / Decimal(100))
    return round_money(value)

def is_coupon_usable(coupon: Coupon, now: datetime) -> bool:
    # Нижняя граница включительно, верхняя исключительно
    return (
        coupon.is_active
        and coupon.valid_from <= now < coupon.valid_until
        and coupon.current_uses < coupon.max_uses
    )

def find_valid_coupon(coupons: Iterable[Coupon], code: str, now: datetime) -> Optional[Coupon]:
    """Ищет купон по коду без учета регистра среди действующих"""
    if not code:
        return None
    wanted = code.strip().lower()
    for coupon in coupons:
        if coupon.code.strip().lower() == wanted and is_coupon_usable(coupon, now):
            return coupon
    return None

def _result(
    pricing: PricingConfig,
    base: Decimal,
    discount: Decimal,
    applied_early_bird: bool,
    applied_coupon: Optional[Coupon] = None,
    error: Optional[str] = None
) -> PricingResult:
    final_price = max(ZERO, base - discount)
    return PricingResult(
        original_price=round_money(base),
        final_price=round_money(final_price),
        discount=round_money(base - final_price),
        applied_coupon=applied_coupon,
        applied_early_bird=applied_early_bird,
        error=error,
        currency=pricing.currency,
        is_free=pricing.is_free,
    )

def compute_price(
    pricing: PricingConfig,
    now: datetime,
    coupon_code: Optional[str] = None,
    available_coupons: Iterable[Coupon] = ()
) -> PricingResult:
    if pricing.is_free:
        return PricingResult(
            original_price=ZERO,
            final_price=ZERO,
            discount=ZERO,
            currency=pricing.currency,
            is_free=True,
        )

    base = get_discount_base(pricing)
    remaining = base
    discount = ZERO
    applied_early_bird = False

    early_bird = pricing.early_bird_discount
    if early_bird and now < early_bird.valid_until:
        discount += calculate_reduction(remaining, early_bird.amount, early_bird.type)
        applied_early_bird = True

    if not coupon_code:
        return _result(pricing, base, discount, applied_early_bird)

    coupon = find_valid_coupon(available_coupons, coupon_code, now)
    if not coupon:
        # Ошибка купона не отменяет раннюю скидку
        return _result(pricing, base, discount, applied_early_bird, error=INVALID_COUPON_MESSAGE)

    if coupon.min_amount and remaining < coupon.min_amount:
        return _result(
            pricing, base, discount, applied_early_bird,
            error=minimum_amount_message(coupon.min_amount, pricing.currency)
        )

    # Купон считается от той же базы, что и ранняя скидка, без каскада
    discount += calculate_reduction(remaining, coupon.value, coupon.type)
    return _result(pricing, base, discount, applied_early_bird, applied_coupon=coupon)
