# backend/activity_booking/api/dependencies/__init__.py
from .database import get_db
from .services import (
    BookingServiceFactory,
    get_booking_service_factory,
    get_payment_orchestrator,
)

__all__ = [
    "BookingServiceFactory",
    "get_booking_service_factory",
    "get_db",
    "get_payment_orchestrator",
]
