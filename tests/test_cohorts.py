from datetime import timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from cohort_engine.core.exceptions import (
    CohortNotFoundException,
    CouponNotFoundException,
    DuplicateCouponException,
    InvalidCohortDatesException,
    InvalidCouponException,
)
from cohort_engine.schemas.cohort import CohortStatus, CohortUpdate, CouponUpdate, DiscountType, EarlyBirdDiscount, PricingConfig
from cohort_engine.services.cohort_service import CohortService, current_week, derive_cohort_status
from cohort_engine.services.release_service import ReleaseScheduler
from conftest import NOW, make_cohort_data, make_coupon

START = NOW - timedelta(days=2)
END = NOW + timedelta(days=60)

def test_status_is_derived_from_dates():
    assert derive_cohort_status(START - timedelta(seconds=1), START, END) == CohortStatus.UPCOMING
    assert derive_cohort_status(START, START, END) == CohortStatus.ACTIVE
    assert derive_cohort_status(END, START, END) == CohortStatus.COMPLETED

def test_cancellation_overrides_dates():
    assert derive_cohort_status(NOW, START, END, is_cancelled=True) == CohortStatus.CANCELLED

def test_current_week_starts_at_zero():
    assert current_week(START - timedelta(days=3), START) == 0
    assert current_week(START + timedelta(days=6), START) == 0
    assert current_week(START + timedelta(days=7), START) == 1
    assert current_week(START + timedelta(days=20), START) == 2

def test_start_must_precede_end():
    with pytest.raises(ValidationError):
        make_cohort_data(start_date=END, end_date=START)

def test_duplicate_coupon_codes_rejected_on_create():
    with pytest.raises(ValidationError):
        make_cohort_data(coupons=[make_coupon("SPRING"), make_coupon("spring")])

def test_create_cohort_schedules_releases(db, clock, course_lessons):
    service = CohortService(db, clock)

    cohort = service.create_cohort(make_cohort_data())

    assert cohort.current_students == 0
    releases = ReleaseScheduler(db).get_cohort_releases(cohort.id)
    assert len(releases) == len(course_lessons)
    assert releases[0].release_date.hour == 8

def test_response_carries_status_and_week(db, clock):
    service = CohortService(db, clock)
    cohort = service.create_cohort(make_cohort_data())

    response = service.to_response(cohort)

    assert response.status == CohortStatus.ACTIVE
    assert response.current_week == 0

def test_get_unknown_cohort_raises(db, clock):
    with pytest.raises(CohortNotFoundException):
        CohortService(db, clock).get_cohort("missing")

def test_update_does_not_move_release_records(db, clock, course_lessons):
    service = CohortService(db, clock)
    cohort = service.create_cohort(make_cohort_data())
    before = [r.release_date for r in ReleaseScheduler(db).get_cohort_releases(cohort.id)]

    updated = service.update_cohort(cohort.id, CohortUpdate(start_date=START + timedelta(days=14), name="Moved"))

    assert updated.name == "Moved"
    assert updated.start_date == START + timedelta(days=14)
    after = [r.release_date for r in ReleaseScheduler(db).get_cohort_releases(cohort.id)]
    assert after == before

def test_update_rejects_inverted_dates(db, clock):
    service = CohortService(db, clock)
    cohort = service.create_cohort(make_cohort_data())

    with pytest.raises(InvalidCohortDatesException):
        service.update_cohort(cohort.id, CohortUpdate(end_date=START - timedelta(days=1)))

def test_cancel_cohort(db, clock):
    service = CohortService(db, clock)
    cohort = service.create_cohort(make_cohort_data())

    service.cancel_cohort(cohort.id)

    assert service.to_response(service.get_cohort(cohort.id)).status == CohortStatus.CANCELLED

def test_list_cohorts_filters_by_course_and_status(db, clock):
    service = CohortService(db, clock)
    service.create_cohort(make_cohort_data(name="Running"))
    service.create_cohort(make_cohort_data(name="Next", start_date=NOW + timedelta(days=10)))
    service.create_cohort(make_cohort_data(course_id="course-2", name="Other"))

    upcoming = service.list_cohorts(course_id="course-1", status=CohortStatus.UPCOMING)
    all_course = service.list_cohorts(course_id="course-1")

    assert [c.name for c in upcoming] == ["Next"]
    assert [c.name for c in all_course] == ["Next", "Running"]

def test_coupon_crud(db, clock):
    service = CohortService(db, clock)
    cohort = service.create_cohort(make_cohort_data())

    service.add_coupon(cohort.id, make_coupon("WELCOME"))
    with pytest.raises(DuplicateCouponException):
        service.add_coupon(cohort.id, make_coupon("welcome"))

    updated = service.update_coupon(cohort.id, "Welcome", CouponUpdate(value=Decimal("25"), max_uses=50))
    assert updated.coupons[0].value == Decimal("25")
    assert updated.coupons[0].max_uses == 50

    removed = service.remove_coupon(cohort.id, "WELCOME")
    assert removed.coupons == []
    with pytest.raises(CouponNotFoundException):
        service.remove_coupon(cohort.id, "WELCOME")

def test_cohort_pricing_uses_stored_coupons(db, clock):
    service = CohortService(db, clock)
    pricing = PricingConfig(
        base_price=Decimal("100"),
        early_bird_discount=EarlyBirdDiscount(amount=Decimal("20"), type=DiscountType.PERCENTAGE, valid_until=NOW + timedelta(days=1)),
    )
    cohort = service.create_cohort(make_cohort_data(pricing=pricing, coupons=[make_coupon(min_amount=Decimal("50"))]))

    result = service.get_cohort_pricing(cohort.id, "SAVE10")

    assert result.final_price == Decimal("70")
    assert result.currency == "EUR"

def test_pricing_display_counts_usable_coupons(db, clock):
    service = CohortService(db, clock)
    coupons = [
        make_coupon("OK"),
        make_coupon("USED", max_uses=1, current_uses=1),
        make_coupon("OFF", is_active=False),
        make_coupon("LATER", valid_from=NOW + timedelta(days=1)),
    ]
    cohort = service.create_cohort(make_cohort_data(coupons=coupons))

    display = service.get_pricing_display(cohort.id)

    assert display.available_coupons == 1
    assert display.base_price == Decimal("100")

def test_coupon_validity_window_must_not_be_inverted():
    with pytest.raises(ValidationError):
        make_coupon(valid_from=NOW, valid_until=NOW)
    with pytest.raises(ValidationError):
        make_coupon(valid_from=NOW + timedelta(days=1), valid_until=NOW)

def test_coupon_code_is_stripped():
    assert make_coupon("  SAVE10 ").code == "SAVE10"
    with pytest.raises(ValidationError):
        make_coupon("   ")

def test_padded_code_counts_as_duplicate(db, clock):
    service = CohortService(db, clock)
    cohort = service.create_cohort(make_cohort_data(coupons=[make_coupon("SAVE10")]))

    with pytest.raises(DuplicateCouponException):
        service.add_coupon(cohort.id, make_coupon(" save10"))

def test_update_coupon_below_current_uses_is_rejected(db, clock):
    service = CohortService(db, clock)
    cohort = service.create_cohort(make_cohort_data(coupons=[make_coupon(max_uses=5, current_uses=3)]))

    with pytest.raises(InvalidCouponException):
        service.update_coupon(cohort.id, "SAVE10", CouponUpdate(max_uses=1))
    with pytest.raises(InvalidCouponException):
        service.update_coupon(cohort.id, "SAVE10", CouponUpdate(valid_until=NOW - timedelta(days=40)))

    assert service.get_cohort(cohort.id).coupons[0].max_uses == 5
