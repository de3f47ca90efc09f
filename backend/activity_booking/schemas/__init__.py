# backend/activity_booking/schemas/__init__.py
from .booking import (
    BookingCreateRequest,
    BookingResultResponse,
    BookingStatusResponse,
    CancelBookingRequest,
    CardDetails,
    EmergencyContactIn,
    ParentIn,
    PaymentDetails,
    RetryPaymentRequest,
    StudentIn,
)

__all__ = [
    "BookingCreateRequest",
    "BookingResultResponse",
    "BookingStatusResponse",
    "CancelBookingRequest",
    "CardDetails",
    "EmergencyContactIn",
    "ParentIn",
    "PaymentDetails",
    "RetryPaymentRequest",
    "StudentIn",
]
