from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cohort_engine.api.dependencies import get_clock
from cohort_engine.database import Base, get_db
from cohort_engine.main import app
from cohort_engine.schemas.cohort import CohortCreate, Coupon, DiscountType, PricingConfig
from cohort_engine.schemas.lesson import LessonCreate
from cohort_engine.crud import lesson as crud_lesson

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

class FixedClock:
    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)

@pytest.fixture
def clock():
    return FixedClock(NOW)

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def client(db, clock):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

def make_coupon(code="SAVE10", **overrides) -> Coupon:
    data = {
        "code": code,
        "type": DiscountType.FIXED,
        "value": Decimal("10"),
        "valid_from": NOW - timedelta(days=30),
        "valid_until": NOW + timedelta(days=30),
        "max_uses": 5,
        "current_uses": 0,
        "is_active": True,
    }
    data.update(overrides)
    return Coupon(**data)

def make_cohort_data(course_id="course-1", **overrides) -> CohortCreate:
    data = {
        "course_id": course_id,
        "name": "Spring cohort",
        "start_date": NOW - timedelta(days=2),
        "end_date": NOW + timedelta(days=60),
        "max_students": 30,
        "pricing": PricingConfig(base_price=Decimal("100"), currency="EUR"),
        "coupons": [],
    }
    data.update(overrides)
    return CohortCreate(**data)

@pytest.fixture
def course_lessons(db):
    """Три урока курса: два на первой неделе, один на второй"""
    return [
        crud_lesson.create_lesson(db, LessonCreate(course_id="course-1", title="Breath basics", week_number=1, order=1)),
        crud_lesson.create_lesson(db, LessonCreate(course_id="course-1", title="Cold exposure", week_number=1, order=2)),
        crud_lesson.create_lesson(db, LessonCreate(course_id="course-1", title="Movement", week_number=2, order=3)),
    ]
