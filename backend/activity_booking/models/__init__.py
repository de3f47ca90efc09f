# backend/activity_booking/models/__init__.py
"""
SQLAlchemy models for the activity booking platform.

Importing this package registers every table on ``Base.metadata``.
"""

from .booking import Booking, BookingEmergencyContact, BookingParent, BookingStudent
from .class_schedule import ClassSchedule
from .discount import Discount, DiscountTarget, DiscountUsage
from .lead import Lead
from .payment import PaymentPlan, PaymentRecord

__all__ = [
    "Booking",
    "BookingStudent",
    "BookingParent",
    "BookingEmergencyContact",
    "ClassSchedule",
    "Discount",
    "DiscountTarget",
    "DiscountUsage",
    "Lead",
    "PaymentPlan",
    "PaymentRecord",
]
