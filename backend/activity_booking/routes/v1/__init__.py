# backend/activity_booking/routes/v1/__init__.py
from .bookings import router as bookings_router

__all__ = ["bookings_router"]
