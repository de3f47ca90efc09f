# backend/tests/conftest.py
"""
Pytest configuration for the activity booking test suite.

Environment is pinned BEFORE any application import so the module-level
settings and engine never point at a real database or payment account.
"""

import os

os.environ["CI"] = "1"  # skip backend/.env
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["ENVIRONMENT"] = "test"
os.environ["BOOKING_DEBUG"] = "false"

from datetime import date, datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Any, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

# Import models so Base.metadata is populated for create_all.
import activity_booking.models  # noqa: F401, E402
from activity_booking.core.enums import DiscountValueType, LeadStatus, ProductType  # noqa: E402
from activity_booking.database import Base  # noqa: E402
from activity_booking.models import (  # noqa: E402
    ClassSchedule,
    Discount,
    DiscountTarget,
    Lead,
    PaymentPlan,
)
from activity_booking.schemas.booking import (  # noqa: E402
    BookingCreateRequest,
    EmergencyContactIn,
    ParentIn,
    PaymentDetails,
    StudentIn,
)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Session:
    """Fresh in-memory database per test; services commit for real."""
    SessionLocal = sessionmaker(
        bind=db_engine, autoflush=False, expire_on_commit=False, future=True
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


class FakeGateway:
    """
    In-memory stand-in for StripeGatewayService.

    ``charge_status`` controls the status returned by create_charge;
    ``fail_step`` makes one step return ``{"success": False}``.
    """

    def __init__(self, charge_status: str = "succeeded", fail_step: Optional[str] = None):
        self.charge_status = charge_status
        self.fail_step = fail_step
        self.calls: List[str] = []
        self.charges: List[Dict[str, Any]] = []

    def _maybe_fail(self, step: str) -> Optional[Dict[str, Any]]:
        self.calls.append(step)
        if self.fail_step == step:
            return {"success": False, "msg": f"{step} declined"}
        return None

    def create_customer(self, name: str, email: Optional[str]) -> Dict[str, Any]:
        return self._maybe_fail("create_customer") or {"success": True, "customer_id": "cus_test"}

    def create_card_token(self, card: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._maybe_fail("create_card_token") or {"success": True, "token_id": "tok_visa"}

    def add_new_card(self, customer_id: str, card_token: str) -> Dict[str, Any]:
        return self._maybe_fail("add_new_card") or {
            "success": True,
            "card_id": "card_test",
            "brand": "Visa",
            "last4": "4242",
            "exp_month": 12,
            "exp_year": 2030,
        }

    def create_charge(self, **kwargs: Any) -> Dict[str, Any]:
        failed = self._maybe_fail("charge")
        if failed:
            return failed
        self.charges.append(kwargs)
        return {
            "success": True,
            "status": self.charge_status,
            "charge_id": f"ch_{len(self.charges)}",
            "failure_message": None if self.charge_status == "succeeded" else "Card declined",
        }

    def get_payment_details(self, reference: str) -> Dict[str, Any]:
        self.calls.append("get_payment_details")
        return {"id": reference, "status": "succeeded"}


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_lead(db: Session):
    def _make(**overrides: Any) -> Lead:
        lead = Lead(
            product_type=overrides.pop("product_type", ProductType.BIRTHDAY_PARTY),
            source=overrides.pop("source", "website"),
            status=overrides.pop("status", LeadStatus.NEW),
            parent_name=overrides.pop("parent_name", "Jamie Parent"),
            email=overrides.pop("email", "jamie@example.com"),
            **overrides,
        )
        db.add(lead)
        db.commit()
        return lead

    return _make


@pytest.fixture
def make_plan(db: Session):
    def _make(price: str = "100.00", product_type: Optional[ProductType] = None) -> PaymentPlan:
        plan = PaymentPlan(title=f"Plan {price}", price=Decimal(price), product_type=product_type)
        db.add(plan)
        db.commit()
        return plan

    return _make


@pytest.fixture
def make_discount(db: Session):
    def _make(
        code: str = "SAVE20",
        value_type: DiscountValueType = DiscountValueType.PERCENTAGE,
        value: str = "20",
        targets: tuple = ("birthday_party",),
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit_total_uses: Optional[int] = None,
        limit_per_customer: Optional[int] = None,
    ) -> Discount:
        now = datetime.now(timezone.utc)
        discount = Discount(
            code=code,
            value_type=value_type,
            value=Decimal(value),
            start_datetime=start or now - timedelta(days=1),
            end_datetime=end or now + timedelta(days=30),
            limit_total_uses=limit_total_uses,
            limit_per_customer=limit_per_customer,
        )
        discount.targets = [DiscountTarget(target=target) for target in targets]
        db.add(discount)
        db.commit()
        return discount

    return _make


@pytest.fixture
def make_schedule(db: Session):
    def _make(capacity: int = 10, total_capacity: Optional[int] = None) -> ClassSchedule:
        schedule = ClassSchedule(
            class_name="Football Camp AM",
            venue_id="01HVENUE0000000000000000AA",
            capacity=capacity,
            total_capacity=total_capacity if total_capacity is not None else capacity,
        )
        db.add(schedule)
        db.commit()
        return schedule

    return _make


def build_student(first_name: str = "Ava", **overrides: Any) -> StudentIn:
    data: Dict[str, Any] = {
        "first_name": first_name,
        "last_name": "Smith",
        "date_of_birth": date(2016, 5, 1),
        "gender": "female",
    }
    data.update(overrides)
    return StudentIn(**data)


def build_payment(**overrides: Any) -> PaymentDetails:
    data: Dict[str, Any] = {
        "first_name": "Jamie",
        "last_name": "Smith",
        "email": "jamie@example.com",
        "billing_address": "1 High Street, London",
    }
    data.update(overrides)
    return PaymentDetails(**data)


def build_request(**overrides: Any) -> BookingCreateRequest:
    """Booking request with one student, one parent, an emergency contact and payment."""
    data: Dict[str, Any] = {
        "students": [build_student(age=9)],
        "parents": [
            ParentIn(
                first_name="Jamie",
                last_name="Smith",
                email="jamie@example.com",
                phone_number="07000 111111",
                relation_to_child="Mother",
                how_did_you_hear="Google",
            )
        ],
        "emergency": EmergencyContactIn(
            first_name="Sam",
            last_name="Jones",
            phone_number="07000 000000",
            relation="Uncle",
        ),
        "payment": build_payment(),
    }
    data.update(overrides)
    return BookingCreateRequest(**data)


@pytest.fixture
def booking_request():
    return build_request


@pytest.fixture
def student_in():
    return build_student


@pytest.fixture
def payment_details():
    return build_payment
