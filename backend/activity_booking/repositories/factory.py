# backend/activity_booking/repositories/factory.py
"""
Repository Factory for the activity booking platform.

Provides centralized creation of repository instances so services share a
single construction path and tests can swap implementations.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .class_schedule_repository import ClassScheduleRepository
    from .discount_repository import DiscountRepository
    from .lead_repository import LeadRepository
    from .payment_repository import PaymentRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking aggregate operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> "PaymentRepository":
        """Create repository for payment plans and payment records."""
        from .payment_repository import PaymentRepository

        return PaymentRepository(db)

    @staticmethod
    def create_discount_repository(db: Session) -> "DiscountRepository":
        """Create repository for discounts and usage tracking."""
        from .discount_repository import DiscountRepository

        return DiscountRepository(db)

    @staticmethod
    def create_class_schedule_repository(db: Session) -> "ClassScheduleRepository":
        """Create repository for class schedule capacity pools."""
        from .class_schedule_repository import ClassScheduleRepository

        return ClassScheduleRepository(db)

    @staticmethod
    def create_lead_repository(db: Session) -> "LeadRepository":
        from .lead_repository import LeadRepository

        return LeadRepository(db)
