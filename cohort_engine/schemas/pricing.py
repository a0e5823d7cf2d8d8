from pydantic import BaseModel
from typing import Optional
from decimal import Decimal

from cohort_engine.schemas.cohort import Coupon, EarlyBirdDiscount

class PricingResult(BaseModel):
    original_price: Decimal
    final_price: Decimal
    discount: Decimal
    applied_coupon: Optional[Coupon] = None
    applied_early_bird: bool = False
    error: Optional[str] = None
    currency: str = "EUR"
    is_free: bool = False

class CouponValidationResult(BaseModel):
    is_valid: bool
    message: str
    coupon: Optional[Coupon] = None

class RedemptionResult(BaseModel):
    success: bool
    message: str
    coupon: Optional[Coupon] = None

class CouponCodeRequest(BaseModel):
    code: str

class PricingDisplay(BaseModel):
    base_price: Decimal
    special_offer: Optional[Decimal] = None
    currency: str
    is_free: bool
    tier: str
    early_bird_discount: Optional[EarlyBirdDiscount] = None
    available_coupons: int = 0

class CheckoutSession(BaseModel):
    is_free: bool
    price: Decimal
    currency: str
    checkout_handle: Optional[str] = None
    pricing: PricingResult
