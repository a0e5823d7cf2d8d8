from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from decimal import Decimal
from datetime import datetime
import enum

from cohort_engine.schemas.common import UTCDateTime
from cohort_engine.utils.timeutils import validate_release_time

class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"

class CohortStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class EarlyBirdDiscount(BaseModel):
    amount: Decimal = Field(..., ge=0)
    type: DiscountType
    valid_until: UTCDateTime

class PricingConfig(BaseModel):
    base_price: Decimal = Field(Decimal("0"), ge=0)
    special_offer: Optional[Decimal] = Field(None, ge=0)
    currency: str = "EUR"
    is_free: bool = False
    tier: str = "standard"
    early_bird_discount: Optional[EarlyBirdDiscount] = None

class Coupon(BaseModel):
    code: str = Field(..., min_length=1)
    type: DiscountType
    value: Decimal = Field(..., ge=0)
    min_amount: Optional[Decimal] = Field(None, ge=0)
    valid_from: UTCDateTime
    valid_until: UTCDateTime
    max_uses: int = Field(..., ge=0)
    current_uses: int = Field(0, ge=0)
    is_active: bool = True
    
    @field_validator('code')
    @classmethod
    def strip_code(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Coupon code must not be blank')
        return v
    
    @model_validator(mode="after")
    def check_coupon(self):
        if self.current_uses > self.max_uses:
            raise ValueError('current_uses cannot exceed max_uses')
        if self.valid_from >= self.valid_until:
            raise ValueError('valid_from must be before valid_until')
        return self

class CouponUpdate(BaseModel):
    # current_uses меняется только при погашении купона
    type: Optional[DiscountType] = None
    value: Optional[Decimal] = Field(None, ge=0)
    min_amount: Optional[Decimal] = Field(None, ge=0)
    valid_from: Optional[UTCDateTime] = None
    valid_until: Optional[UTCDateTime] = None
    max_uses: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

class CohortBase(BaseModel):
    course_id: str
    name: str
    start_date: UTCDateTime
    end_date: UTCDateTime
    max_students: int = Field(0, ge=0)
    weekly_release_time: str = "08:00"
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    coupons: List[Coupon] = []
    
    @field_validator('weekly_release_time')
    @classmethod
    def release_time_format(cls, v):
        if not validate_release_time(v):
            raise ValueError('weekly_release_time must be in HH:MM format')
        return v

class CohortCreate(CohortBase):
    @model_validator(mode="after")
    def check_cohort(self):
        if self.start_date >= self.end_date:
            raise ValueError('start_date must be before end_date')
        codes = [coupon.code.lower() for coupon in self.coupons]
        if len(codes) != len(set(codes)):
            raise ValueError('Coupon codes must be unique within a cohort')
        return self

class CohortUpdate(BaseModel):
    name: Optional[str] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    max_students: Optional[int] = Field(None, ge=0)
    weekly_release_time: Optional[str] = None
    pricing: Optional[PricingConfig] = None
    
    @field_validator('weekly_release_time')
    @classmethod
    def release_time_format(cls, v):
        if v is not None and not validate_release_time(v):
            raise ValueError('weekly_release_time must be in HH:MM format')
        return v

class Cohort(CohortBase):
    id: str
    current_students: int = 0
    is_cancelled: bool = False
    created_at: Optional[datetime] = None

class CohortResponse(Cohort):
    status: CohortStatus
    current_week: int = 0
