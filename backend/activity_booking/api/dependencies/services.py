# backend/activity_booking/api/dependencies/services.py
"""
Service dependencies for the booking routes.

Override ``get_payment_orchestrator`` in tests to keep requests away from
the real payment gateway.
"""

from typing import Callable, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...services.booking_products import ProductConfig
from ...services.booking_service import BookingService
from ...services.payment_gateway import StripeGatewayService
from ...services.payment_orchestrator import PaymentOrchestrator
from .database import get_db

BookingServiceFactory = Callable[[Optional[ProductConfig]], BookingService]


def get_payment_orchestrator() -> PaymentOrchestrator:
    return PaymentOrchestrator(StripeGatewayService(settings), currency=settings.stripe_currency)


def get_booking_service_factory(
    db: Session = Depends(get_db),
    orchestrator: PaymentOrchestrator = Depends(get_payment_orchestrator),
) -> BookingServiceFactory:
    """
    Build booking services bound to the request's session.

    The product is only known after path parsing, so routes receive a
    factory and pass the product config themselves.
    """

    def factory(config: Optional[ProductConfig] = None) -> BookingService:
        return BookingService(
            db,
            config,
            orchestrator=orchestrator,
            booking_debug=settings.booking_debug,
        )

    return factory
