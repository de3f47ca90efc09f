# backend/activity_booking/core/enums.py
"""
Core enums for the activity booking platform.

All enums persisted to the database inherit from (str, Enum) so that the
stored value matches the value used in raw SQL and API payloads.
"""

from enum import Enum
from typing import Dict, FrozenSet


class ProductType(str, Enum):
    """Bookable activity products."""

    BIRTHDAY_PARTY = "birthday_party"
    ONE_TO_ONE = "one_to_one"
    HOLIDAY_CAMP = "holiday_camp"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Created, payment not settled
    ACTIVE = "active"  # Paid
    CANCELLED = "cancelled"
    WAITING_LIST = "waiting_list"  # Class full at request time


BOOKING_STATUS_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.ACTIVE, BookingStatus.CANCELLED}),
    BookingStatus.ACTIVE: frozenset({BookingStatus.CANCELLED}),
    # Renewal of a paid booking
    BookingStatus.CANCELLED: frozenset({BookingStatus.ACTIVE}),
    BookingStatus.WAITING_LIST: frozenset({BookingStatus.CANCELLED}),
}


def can_transition(current: BookingStatus | str, target: BookingStatus | str) -> bool:
    """Return True if the transition table allows ``current -> target``."""
    try:
        current_status = BookingStatus(current)
        target_status = BookingStatus(target)
    except ValueError:
        return False
    return target_status in BOOKING_STATUS_TRANSITIONS.get(current_status, frozenset())


class PaymentRecordStatus(str, Enum):
    """Settlement state of a booking's payment record."""

    PENDING = "pending"  # Only visible between booking persistence and settlement
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class DiscountValueType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class LeadStatus(str, Enum):
    NEW = "new"
    ACTIVE = "active"  # Converted into a booking
