"""Domain exception status codes and HTTP conversion."""

import pytest

from activity_booking.core.exceptions import (
    BusinessRuleException,
    CapacityStillAvailableError,
    DiscountUsageExceededError,
    DuplicateBookingError,
    InsufficientCapacityError,
    InvalidPlanError,
    PaymentGatewayError,
    PersistenceError,
    ValidationException,
)


@pytest.mark.parametrize(
    "exc,status_code,code",
    [
        (ValidationException("bad"), 400, "ValidationException"),
        (InvalidPlanError("plan-1"), 404, "INVALID_PLAN"),
        (DuplicateBookingError("lead-1", "bk-1"), 409, "DUPLICATE_BOOKING"),
        (InsufficientCapacityError("cls-1", 1, 3), 409, "INSUFFICIENT_CAPACITY"),
        (CapacityStillAvailableError("cls-1", 4), 409, "CAPACITY_STILL_AVAILABLE"),
        (BusinessRuleException("nope", code="PAYMENT_REQUIRED"), 422, "PAYMENT_REQUIRED"),
        (PersistenceError(booking_id="bk-1"), 500, "PERSISTENCE_ERROR"),
        (PaymentGatewayError("declined", step="charge"), 502, "PAYMENT_GATEWAY_ERROR"),
    ],
)
def test_to_http_exception(exc, status_code, code):
    http_exc = exc.to_http_exception()

    assert http_exc.status_code == status_code
    assert http_exc.detail["code"] == code
    assert http_exc.detail["message"] == exc.message


def test_duplicate_booking_details():
    exc = DuplicateBookingError("lead-1", "bk-1")

    assert exc.message == "You have already booked this lead."
    assert exc.details == {"lead_id": "lead-1", "existing_booking_id": "bk-1"}


def test_usage_limit_codes():
    total = DiscountUsageExceededError("SAVE20", 5, 5)
    per_customer = DiscountUsageExceededError("SAVE20", 1, 1, per_customer=True)

    assert total.code == "DISCOUNT_USAGE_EXCEEDED"
    assert per_customer.code == "DISCOUNT_CUSTOMER_LIMIT_REACHED"
    assert "this student" in per_customer.message
