# backend/activity_booking/schemas/booking.py
"""
Booking request and response schemas.

One request shape is shared by all products; product-specific fields are
optional here and checked by the booking service for the product at hand.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from ..core.enums import BookingStatus, PaymentRecordStatus, ProductType
from ._strict_base import StrictModel, StrictRequestModel


class StudentIn(StrictRequestModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: date
    age: Optional[int] = Field(
        default=None, ge=0, le=120, description="Derived from date_of_birth when omitted"
    )
    gender: str = Field(..., min_length=1, max_length=20)
    medical_information: Optional[str] = None


class ParentIn(StrictRequestModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone_number: str = Field(..., min_length=1, max_length=50)
    relation_to_child: str = Field(..., min_length=1, max_length=50)
    how_did_you_hear: str = Field(..., min_length=1, max_length=255)


class EmergencyContactIn(StrictRequestModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone_number: str = Field(..., min_length=1, max_length=50)
    relation: str = Field(..., min_length=1, max_length=50)


class CardDetails(StrictRequestModel):
    """Raw card details; only forwarded to the gateway for tokenization."""

    number: str = Field(..., min_length=12, max_length=19)
    exp_month: int = Field(..., ge=1, le=12)
    exp_year: int = Field(..., ge=2000)
    cvc: str = Field(..., min_length=3, max_length=4)

    @field_validator("number")
    @classmethod
    def _digits_only(cls, value: str) -> str:
        digits = value.replace(" ", "")
        if not digits.isdigit():
            raise ValueError("card number must contain digits only")
        return digits


class PaymentDetails(StrictRequestModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    billing_address: str = Field(..., min_length=1)
    customer_id: Optional[str] = Field(default=None, description="Existing gateway customer")
    card_id: Optional[str] = Field(default=None, description="Card already attached to the customer")
    card: Optional[CardDetails] = None


class BookingCreateRequest(StrictRequestModel):
    """
    Create a booking for any product.

    ``class_schedule_id`` is required for holiday camps. ``payment`` and
    ``emergency`` are required for paid creation; waiting-list entries may
    omit both.
    """

    lead_id: Optional[str] = None
    payment_plan_id: Optional[str] = None
    discount_id: Optional[str] = None
    venue_id: Optional[str] = None
    class_schedule_id: Optional[str] = None
    holiday_camp_id: Optional[str] = None
    coach_id: Optional[str] = None
    address: Optional[str] = None
    session_date: Optional[date] = None
    session_time: Optional[str] = Field(default=None, max_length=20)
    area_work_on: Optional[str] = None
    source: Optional[str] = Field(default=None, max_length=50)
    students: List[StudentIn] = Field(..., min_length=1)
    parents: List[ParentIn] = Field(..., min_length=1)
    emergency: Optional[EmergencyContactIn] = None
    payment: Optional[PaymentDetails] = None


class CancelBookingRequest(StrictRequestModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class RetryPaymentRequest(StrictRequestModel):
    payment: PaymentDetails


class BookingResultResponse(StrictModel):
    success: bool
    booking_id: str
    product_type: ProductType
    status: BookingStatus
    payment_status: Optional[PaymentRecordStatus] = None
    gateway_reference: Optional[str] = None
    base_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    failure_reason: Optional[str] = None


class BookingStatusResponse(StrictModel):
    booking_id: str
    status: BookingStatus
    seats_reserved: int
    cancelled_at: Optional[datetime] = None
    activated_at: Optional[datetime] = None
