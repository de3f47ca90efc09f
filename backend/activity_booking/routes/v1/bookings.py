# backend/activity_booking/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST /holiday-camp/waiting-list - Join the waiting list of a full class
    POST /{product} - Create and pay for a booking
    POST /{booking_id}/cancel - Cancel a booking and release its seats
    POST /{booking_id}/reactivate - Renew a cancelled, paid booking
    POST /{booking_id}/retry-payment - Retry a failed payment
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, status
from fastapi.params import Path

from ...api.dependencies import BookingServiceFactory, get_booking_service_factory
from ...core.enums import ProductType
from ...core.exceptions import DomainException
from ...models.booking import Booking
from ...schemas.booking import (
    BookingCreateRequest,
    BookingResultResponse,
    BookingStatusResponse,
    CancelBookingRequest,
    RetryPaymentRequest,
)
from ...services.booking_products import get_product_config
from ...services.booking_service import BookingResult

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def parse_product(slug: str) -> ProductType:
    """Accept both ``holiday-camp`` and ``holiday_camp`` style slugs."""
    try:
        return ProductType(slug.strip().lower().replace("-", "_"))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": f"Unknown product '{slug}'", "code": "UNKNOWN_PRODUCT"},
        )


def _result_response(result: BookingResult) -> BookingResultResponse:
    return BookingResultResponse(**result.to_dict())


def _status_response(booking: Booking) -> BookingStatusResponse:
    return BookingStatusResponse(
        booking_id=booking.id,
        status=booking.status,
        seats_reserved=booking.seats_reserved or 0,
        cancelled_at=booking.cancelled_at,
        activated_at=booking.activated_at,
    )


# Static routes first (before dynamic routes with path parameters)


@router.post(
    "/holiday-camp/waiting-list",
    response_model=BookingResultResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_waiting_list_booking(
    booking_data: BookingCreateRequest = Body(...),
    booked_by: Optional[str] = Header(default=None, alias="X-Booked-By"),
    service_factory: BookingServiceFactory = Depends(get_booking_service_factory),
) -> BookingResultResponse:
    """Add students to the waiting list of a fully booked holiday camp class."""
    try:
        service = service_factory(get_product_config(ProductType.HOLIDAY_CAMP))
        result = await asyncio.to_thread(
            service.create_waiting_list_booking, booking_data, booked_by
        )
        return _result_response(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{product}",
    response_model=BookingResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Unknown product, lead, plan, discount or class"},
        409: {"description": "Lead already booked or class full"},
        422: {"description": "Discount cannot be applied"},
    },
)
async def create_booking(
    product: str = Path(..., description="birthday-party, one-to-one or holiday-camp"),
    booking_data: BookingCreateRequest = Body(...),
    booked_by: Optional[str] = Header(default=None, alias="X-Booked-By"),
    service_factory: BookingServiceFactory = Depends(get_booking_service_factory),
) -> BookingResultResponse:
    """
    Create a booking and charge it.

    A declined charge still returns 201: the booking stays pending with
    ``payment_status=failed`` and can be retried.
    """
    product_type = parse_product(product)
    try:
        service = service_factory(get_product_config(product_type))
        result = await asyncio.to_thread(service.create_booking, booking_data, booked_by)
        return _result_response(result)
    except DomainException as e:
        handle_domain_exception(e)


# Dynamic routes (with path parameters)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingStatusResponse,
    responses={404: {"description": "Booking not found"}},
)
async def cancel_booking(
    booking_id: str = Path(
        ...,
        description="Booking ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    cancel_data: Optional[CancelBookingRequest] = Body(default=None),
    booked_by: Optional[str] = Header(default=None, alias="X-Booked-By"),
    service_factory: BookingServiceFactory = Depends(get_booking_service_factory),
) -> BookingStatusResponse:
    try:
        service = service_factory(None)
        booking = await asyncio.to_thread(
            service.cancel_booking,
            booking_id,
            cancel_data.reason if cancel_data else None,
            booked_by,
        )
        return _status_response(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/reactivate",
    response_model=BookingStatusResponse,
    responses={404: {"description": "Booking not found"}},
)
async def reactivate_booking(
    booking_id: str = Path(
        ...,
        description="Booking ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    booked_by: Optional[str] = Header(default=None, alias="X-Booked-By"),
    service_factory: BookingServiceFactory = Depends(get_booking_service_factory),
) -> BookingStatusResponse:
    try:
        service = service_factory(None)
        booking = await asyncio.to_thread(service.reactivate_booking, booking_id, booked_by)
        return _status_response(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/retry-payment",
    response_model=BookingResultResponse,
    responses={404: {"description": "Booking not found"}},
)
async def retry_payment(
    booking_id: str = Path(
        ...,
        description="Booking ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    retry_data: RetryPaymentRequest = Body(...),
    booked_by: Optional[str] = Header(default=None, alias="X-Booked-By"),
    service_factory: BookingServiceFactory = Depends(get_booking_service_factory),
) -> BookingResultResponse:
    try:
        service = service_factory(None)
        result = await asyncio.to_thread(
            service.retry_payment, booking_id, retry_data.payment, booked_by
        )
        return _result_response(result)
    except DomainException as e:
        handle_domain_exception(e)
