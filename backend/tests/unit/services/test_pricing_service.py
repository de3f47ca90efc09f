"""Pricing and discount rules."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from activity_booking.core.enums import DiscountValueType, ProductType
from activity_booking.core.exceptions import (
    DiscountExpiredError,
    DiscountNotApplicableError,
    DiscountNotYetActiveError,
    DiscountUsageExceededError,
    InvalidDiscountError,
    InvalidPlanError,
    ValidationException,
)
from activity_booking.models import Booking, BookingStudent, DiscountUsage
from activity_booking.services.pricing_service import PricingService, amount_to_minor_units


@pytest.fixture
def pricing(db):
    return PricingService(db)


def test_no_plan_and_no_discount_is_free(pricing):
    quote = pricing.quote(ProductType.BIRTHDAY_PARTY)

    assert quote.base_amount == Decimal("0.00")
    assert quote.final_amount == Decimal("0.00")
    assert quote.discount is None
    assert not quote.discount_applied


def test_percentage_discount_applies_to_plan_price(pricing, make_plan, make_discount):
    plan = make_plan("100.00")
    discount = make_discount(code="SAVE20", value="20")

    quote = pricing.quote(ProductType.BIRTHDAY_PARTY, plan.id, discount.id)

    assert quote.base_amount == Decimal("100.00")
    assert quote.discount_amount == Decimal("20.00")
    assert quote.final_amount == Decimal("80.00")
    assert quote.discount.id == discount.id
    assert quote.discount_applied


def test_percentage_discount_rounds_half_up_to_cents(pricing, make_plan, make_discount):
    plan = make_plan("10.05")
    discount = make_discount(value="50")

    quote = pricing.quote(ProductType.BIRTHDAY_PARTY, plan.id, discount.id)

    assert quote.discount_amount == Decimal("5.03")
    assert quote.final_amount == Decimal("5.02")


def test_fixed_discount_larger_than_base_clamps_to_zero(pricing, make_plan, make_discount):
    plan = make_plan("20.00")
    discount = make_discount(code="FLAT30", value_type=DiscountValueType.FIXED, value="30")

    quote = pricing.quote(ProductType.BIRTHDAY_PARTY, plan.id, discount.id)

    assert quote.discount_amount == Decimal("30.00")
    assert quote.final_amount == Decimal("0.00")


def test_unknown_plan_is_rejected(pricing):
    with pytest.raises(InvalidPlanError):
        pricing.quote(ProductType.ONE_TO_ONE, "01HZZZZZZZZZZZZZZZZZZZZZZZ")


def test_plan_scoped_to_another_product_is_rejected(pricing, make_plan):
    plan = make_plan("50.00", product_type=ProductType.HOLIDAY_CAMP)

    with pytest.raises(InvalidPlanError):
        pricing.quote(ProductType.ONE_TO_ONE, plan.id)


def test_unknown_discount_is_rejected(pricing, make_plan):
    plan = make_plan()

    with pytest.raises(InvalidDiscountError):
        pricing.quote(ProductType.BIRTHDAY_PARTY, plan.id, "01HZZZZZZZZZZZZZZZZZZZZZZZ")


def test_discount_before_window_is_not_active(pricing, make_plan, make_discount):
    now = datetime.now(timezone.utc)
    discount = make_discount(start=now + timedelta(days=1), end=now + timedelta(days=5))

    with pytest.raises(DiscountNotYetActiveError) as exc:
        pricing.quote(ProductType.BIRTHDAY_PARTY, make_plan().id, discount.id)
    assert exc.value.code == "DISCOUNT_NOT_YET_ACTIVE"


def test_discount_after_window_is_expired(pricing, make_plan, make_discount):
    now = datetime.now(timezone.utc)
    discount = make_discount(start=now - timedelta(days=10), end=now - timedelta(days=1))

    with pytest.raises(DiscountExpiredError):
        pricing.quote(ProductType.BIRTHDAY_PARTY, make_plan().id, discount.id)


def test_discount_must_target_product(pricing, make_plan, make_discount):
    discount = make_discount(targets=("holiday_camp",))

    with pytest.raises(DiscountNotApplicableError) as exc:
        pricing.quote(ProductType.BIRTHDAY_PARTY, make_plan().id, discount.id)
    assert "birthday party" in exc.value.message


def test_discount_at_total_usage_cap_is_rejected(db, pricing, make_plan, make_discount):
    discount = make_discount(limit_total_uses=1)
    booking = Booking(product_type=ProductType.BIRTHDAY_PARTY, total_students=1)
    db.add(booking)
    db.flush()
    db.add(DiscountUsage(discount_id=discount.id, booking_id=booking.id, used_by="admin"))
    db.commit()

    with pytest.raises(DiscountUsageExceededError) as exc:
        pricing.quote(ProductType.BIRTHDAY_PARTY, make_plan().id, discount.id)
    assert exc.value.details == {"discount_code": "SAVE20", "limit": 1, "used": 1}


def test_per_customer_limit_matches_first_student(
    db, pricing, make_plan, make_discount, student_in
):
    discount = make_discount(limit_per_customer=1)
    booking = Booking(product_type=ProductType.BIRTHDAY_PARTY, total_students=1)
    db.add(booking)
    db.flush()
    db.add(
        BookingStudent(
            booking_id=booking.id,
            position=0,
            first_name="Ava",
            last_name="Smith",
            date_of_birth=date(2016, 5, 1),
        )
    )
    db.add(DiscountUsage(discount_id=discount.id, booking_id=booking.id))
    db.commit()
    plan = make_plan()

    with pytest.raises(DiscountUsageExceededError) as exc:
        pricing.quote(
            ProductType.BIRTHDAY_PARTY,
            plan.id,
            discount.id,
            [student_in("ava", last_name="SMITH ", date_of_birth=date(2016, 5, 1))],
        )
    assert exc.value.code == "DISCOUNT_CUSTOMER_LIMIT_REACHED"

    # A different child can still use it
    quote = pricing.quote(
        ProductType.BIRTHDAY_PARTY,
        plan.id,
        discount.id,
        [student_in("Ava", date_of_birth=date(2017, 1, 1))],
    )
    assert quote.final_amount == Decimal("80.00")

    # So can a namesake from another family
    quote = pricing.quote(
        ProductType.BIRTHDAY_PARTY,
        plan.id,
        discount.id,
        [student_in("Ava", last_name="Jones", date_of_birth=date(2016, 5, 1))],
    )
    assert quote.final_amount == Decimal("80.00")


def test_amount_to_minor_units():
    assert amount_to_minor_units(Decimal("80.00")) == 8000
    assert amount_to_minor_units(Decimal("0.005")) == 1
    assert amount_to_minor_units(Decimal("0")) == 0
    with pytest.raises(ValidationException):
        amount_to_minor_units(Decimal("-1"))
