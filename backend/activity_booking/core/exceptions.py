# backend/activity_booking/core/exceptions.py
"""
Domain-specific exceptions for the activity booking platform.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation of a request fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details,
            },
        )


# Duplicate guard


class DuplicateBookingError(ConflictException):
    """Raised when a lead already has a booking."""

    def __init__(self, lead_id: str, existing_booking_id: Optional[str] = None):
        super().__init__(
            message="You have already booked this lead.",
            code="DUPLICATE_BOOKING",
            details={"lead_id": lead_id, "existing_booking_id": existing_booking_id},
        )


class LeadNotFoundError(NotFoundException):
    def __init__(self, lead_id: str):
        super().__init__(
            message=f"Lead {lead_id} not found",
            code="LEAD_NOT_FOUND",
            details={"lead_id": lead_id},
        )


class BookingNotFoundError(NotFoundException):
    def __init__(self, booking_id: str):
        super().__init__(
            message=f"Booking {booking_id} not found",
            code="BOOKING_NOT_FOUND",
            details={"booking_id": booking_id},
        )


# Pricing and discounts


class InvalidPlanError(NotFoundException):
    """Raised when a referenced payment plan does not exist for the product."""

    def __init__(self, plan_id: str):
        super().__init__(
            message="Invalid payment plan ID",
            code="INVALID_PLAN",
            details={"payment_plan_id": plan_id},
        )


class InvalidDiscountError(NotFoundException):
    def __init__(self, discount_id: str):
        super().__init__(
            message="Invalid discount ID",
            code="INVALID_DISCOUNT",
            details={"discount_id": discount_id},
        )


class DiscountNotYetActiveError(BusinessRuleException):
    def __init__(self, code: str, starts_at: Any):
        super().__init__(
            message=f"Discount code {code} is not active yet.",
            code="DISCOUNT_NOT_YET_ACTIVE",
            details={"discount_code": code, "starts_at": str(starts_at)},
        )


class DiscountExpiredError(BusinessRuleException):
    def __init__(self, code: str, ended_at: Any):
        super().__init__(
            message=f"Discount code {code} has expired.",
            code="DISCOUNT_EXPIRED",
            details={"discount_code": code, "ended_at": str(ended_at)},
        )


class DiscountNotApplicableError(BusinessRuleException):
    def __init__(self, code: str, product: str):
        super().__init__(
            message=f"Discount code {code} is not valid for {product.replace('_', ' ')} bookings.",
            code="DISCOUNT_NOT_APPLICABLE",
            details={"discount_code": code, "product": product},
        )


class DiscountUsageExceededError(BusinessRuleException):
    def __init__(
        self,
        code: str,
        limit: int,
        used: int,
        *,
        per_customer: bool = False,
    ):
        if per_customer:
            message = f"Discount code {code} already used maximum times by this student."
            error_code = "DISCOUNT_CUSTOMER_LIMIT_REACHED"
        else:
            message = f"Discount code {code} has reached its total usage limit."
            error_code = "DISCOUNT_USAGE_EXCEEDED"
        super().__init__(
            message=message,
            code=error_code,
            details={"discount_code": code, "limit": limit, "used": used},
        )


# Capacity


class InvalidClassScheduleError(NotFoundException):
    def __init__(self, class_schedule_id: Optional[str]):
        super().__init__(
            message="Invalid class schedule ID",
            code="INVALID_CLASS_SCHEDULE",
            details={"class_schedule_id": class_schedule_id},
        )


class InsufficientCapacityError(ConflictException):
    def __init__(self, class_schedule_id: str, available: int, requested: int):
        super().__init__(
            message=(
                f"Not enough capacity in this class. "
                f"Available: {available}, Requested: {requested}"
            ),
            code="INSUFFICIENT_CAPACITY",
            details={
                "class_schedule_id": class_schedule_id,
                "available": available,
                "requested": requested,
            },
        )


class CapacityStillAvailableError(ConflictException):
    def __init__(self, class_schedule_id: str, available: int):
        super().__init__(
            message=f"Class has available seats ({available}). Cannot add to waiting list.",
            code="CAPACITY_STILL_AVAILABLE",
            details={"class_schedule_id": class_schedule_id, "available": available},
        )


# Booking lifecycle


class InvalidStatusTransitionError(ConflictException):
    def __init__(self, booking_id: Optional[str], current: Any, target: Any):
        current_value = getattr(current, "value", current)
        target_value = getattr(target, "value", target)
        super().__init__(
            message=f"Cannot change booking status from {current_value} to {target_value}",
            code="INVALID_STATUS_TRANSITION",
            details={"booking_id": booking_id, "from": current_value, "to": target_value},
        )


# Payments and persistence


class PaymentGatewayError(ServiceException):
    """
    Raised by a payment gateway step.

    Never escapes the payment orchestrator: it is converted into a failed
    payment record with the message stored as the failure reason.
    """

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, *, step: Optional[str] = None):
        super().__init__(message=message, code="PAYMENT_GATEWAY_ERROR", details={"step": step})
        self.step = step


class PersistenceError(ServiceException):
    """Raised when the storage layer fails inside a unit of work."""

    def __init__(self, message: str = "Database operation failed", **details: Any):
        super().__init__(message=message, code="PERSISTENCE_ERROR", details=details)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
