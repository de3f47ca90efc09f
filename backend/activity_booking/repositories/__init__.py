# backend/activity_booking/repositories/__init__.py
"""Data access layer. Repositories flush; services own transactions."""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .class_schedule_repository import ClassScheduleRepository
from .discount_repository import DiscountRepository
from .factory import RepositoryFactory
from .lead_repository import LeadRepository
from .payment_repository import PaymentRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "ClassScheduleRepository",
    "DiscountRepository",
    "LeadRepository",
    "PaymentRepository",
    "RepositoryFactory",
]
