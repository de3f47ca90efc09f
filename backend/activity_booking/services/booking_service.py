# backend/activity_booking/services/booking_service.py
"""
Booking creation and payment orchestration for all products.

Creation runs as two units of work around the gateway call:

1. duplicate guard, pricing, capacity pre-check, then the booking aggregate
   and a pending payment record are persisted and committed;
2. the charge is attempted with no transaction open;
3. the payment record is settled and, when paid, the booking is activated,
   seats are taken and discount usage is recorded, then committed.

A failed charge keeps the booking ``pending`` with a ``failed`` payment
record so it can be reconciled or retried later.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.enums import BookingStatus, PaymentRecordStatus, ProductType
from ..core.exceptions import (
    BookingNotFoundError,
    BusinessRuleException,
    ConflictException,
    DuplicateBookingError,
    InvalidStatusTransitionError,
    LeadNotFoundError,
    NotFoundException,
    PersistenceError,
    ValidationException,
)
from ..models.booking import Booking
from ..models.lead import Lead
from ..models.payment import PaymentRecord
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingCreateRequest
from .base import BaseService
from .booking_products import ProductConfig, get_product_config
from .capacity_service import CapacityService
from .payment_gateway import StripeGatewayService
from .payment_orchestrator import ChargeOutcome, PaymentOrchestrator
from .pricing_service import ZERO, PriceQuote, PricingService

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "website"


@dataclass(frozen=True)
class BookingResult:
    success: bool
    booking_id: str
    product_type: ProductType
    status: BookingStatus
    payment_status: Optional[PaymentRecordStatus]
    gateway_reference: Optional[str]
    base_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    failure_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "booking_id": self.booking_id,
            "product_type": self.product_type,
            "status": self.status,
            "payment_status": self.payment_status,
            "gateway_reference": self.gateway_reference,
            "base_amount": self.base_amount,
            "discount_amount": self.discount_amount,
            "final_amount": self.final_amount,
            "failure_reason": self.failure_reason,
        }


class BookingService(BaseService):
    """
    Generic booking orchestrator.

    ``config`` selects the product for creation operations. Lifecycle
    operations (cancel, reactivate, retry) work on any booking and resolve
    the product from the stored row.
    """

    def __init__(
        self,
        db: Session,
        config: Optional[ProductConfig] = None,
        *,
        orchestrator: Optional[PaymentOrchestrator] = None,
        gateway: Optional[StripeGatewayService] = None,
        pricing_service: Optional[PricingService] = None,
        booking_debug: Optional[bool] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(db)
        self.settings = settings or default_settings
        self.config = config
        self.booking_debug = (
            self.settings.booking_debug if booking_debug is None else booking_debug
        )
        self.currency = self.settings.stripe_currency

        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.discount_repository = RepositoryFactory.create_discount_repository(db)
        self.lead_repository = RepositoryFactory.create_lead_repository(db)
        self.pricing_service = pricing_service or PricingService(
            db,
            payment_repository=self.payment_repository,
            discount_repository=self.discount_repository,
        )

        if orchestrator is None:
            gateway = gateway or StripeGatewayService(self.settings)
            orchestrator = PaymentOrchestrator(gateway, currency=self.currency)
        self.orchestrator = orchestrator
        self.gateway = gateway or orchestrator.gateway

    # ------------------------------------------------------------------ #
    # Creation
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("booking.create")
    def create_booking(
        self, request: BookingCreateRequest, booked_by: Optional[str] = None
    ) -> BookingResult:
        """
        Create a paid booking and attempt its charge.

        Raises:
            ValidationException: Request is missing product-required parts
            DuplicateBookingError: The lead already has a booking
            LeadNotFoundError: Referenced lead does not exist
            InvalidPlanError, InvalidDiscountError and the discount rule errors
            InvalidClassScheduleError, InsufficientCapacityError
            PersistenceError: Storage failed in either unit of work
        """
        config = self._require_config()
        self._validate_request(config, request, require_payment=True)
        self._debug(f"{config.product.value}: creating booking for lead={request.lead_id}")

        with self.transaction():
            booking, quote = self._persist_pending_booking(config, request, booked_by)
            booking_id = booking.id
        self._debug(
            f"{config.product.value}: booking {booking_id} persisted as pending, "
            f"final amount {quote.final_amount}"
        )

        outcome = self.orchestrator.charge(
            request.payment,
            quote.final_amount,
            config.charge_description(booking_id),
            metadata={
                "booking_id": booking_id,
                "product": config.product.value,
                "lead_id": request.lead_id or "",
            },
        )
        self._debug(f"{config.product.value}: charge for {booking_id} -> {outcome.status.value}")

        booking = self._settle_with_reconciliation_log(config, booking_id, outcome, booked_by)

        return BookingResult(
            success=True,
            booking_id=booking_id,
            product_type=config.product,
            status=booking.status,
            payment_status=outcome.status,
            gateway_reference=outcome.reference,
            base_amount=quote.base_amount,
            discount_amount=quote.discount_amount,
            final_amount=quote.final_amount,
            failure_reason=outcome.failure_reason,
        )

    @BaseService.measure_operation("booking.create_waiting_list")
    def create_waiting_list_booking(
        self, request: BookingCreateRequest, booked_by: Optional[str] = None
    ) -> BookingResult:
        """
        Put students on the waiting list of a full class. No payment is taken.

        Raises:
            ValidationException: Product has no waiting list or request is incomplete
            DuplicateBookingError, LeadNotFoundError
            InvalidClassScheduleError
            CapacityStillAvailableError: The class still has seats
        """
        config = self._require_config()
        if not config.supports_waiting_list:
            raise ValidationException(
                f"{config.label} bookings have no waiting list",
                code="WAITING_LIST_NOT_SUPPORTED",
                details={"product": config.product.value},
            )
        self._validate_request(config, request, require_payment=False)

        with self.transaction():
            lead = self.ensure_lead_not_booked(request.lead_id)
            self._capacity(config).ensure_waiting_list_allowed(request.class_schedule_id)
            booking = self._create_booking_row(
                config,
                request,
                status=BookingStatus.WAITING_LIST,
                booked_by=booked_by,
                source=self._resolve_source(request, lead),
                discount_id=None,
            )
            self._create_people(config, booking, request)
            if lead is not None:
                self.lead_repository.mark_active(lead.id)
            booking_id = booking.id

        self.logger.info(f"Booking {booking_id} added to waiting list")
        return BookingResult(
            success=True,
            booking_id=booking_id,
            product_type=config.product,
            status=BookingStatus.WAITING_LIST,
            payment_status=None,
            gateway_reference=None,
            base_amount=ZERO,
            discount_amount=ZERO,
            final_amount=ZERO,
        )

    def ensure_lead_not_booked(self, lead_id: Optional[str]) -> Optional[Lead]:
        """
        Duplicate guard. Returns the lead (or None when no lead is referenced).

        Raises:
            LeadNotFoundError: Lead id given but unknown
            DuplicateBookingError: Lead already converted into a booking
        """
        if not lead_id:
            return None
        lead = self.lead_repository.get_by_id(lead_id, load_relationships=False)
        if lead is None:
            raise LeadNotFoundError(lead_id)
        existing = self.booking_repository.get_by_lead(lead_id)
        if existing is not None:
            self.logger.info(f"Lead {lead_id} already booked as {existing.id}")
            raise DuplicateBookingError(lead_id, existing.id)
        return lead

    def _persist_pending_booking(
        self,
        config: ProductConfig,
        request: BookingCreateRequest,
        booked_by: Optional[str],
    ) -> tuple[Booking, PriceQuote]:
        lead = self.ensure_lead_not_booked(request.lead_id)

        quote = self.pricing_service.quote(
            config.product,
            request.payment_plan_id,
            request.discount_id,
            request.students,
            discount_target=config.discount_target,
        )

        if config.uses_capacity:
            self._capacity(config).check_capacity(
                request.class_schedule_id, len(request.students)
            )

        booking = self._create_booking_row(
            config,
            request,
            status=BookingStatus.PENDING,
            booked_by=booked_by,
            source=self._resolve_source(request, lead),
            discount_id=quote.discount.id if quote.discount_applied else None,
        )
        self._create_people(config, booking, request)

        self.payment_repository.create_payment_record(
            booking_id=booking.id,
            base_amount=quote.base_amount,
            discount_amount=quote.discount_amount,
            final_amount=quote.final_amount,
            currency=self.currency,
        )

        if lead is not None:
            self.lead_repository.mark_active(lead.id)

        return booking, quote

    def _create_booking_row(
        self,
        config: ProductConfig,
        request: BookingCreateRequest,
        *,
        status: BookingStatus,
        booked_by: Optional[str],
        source: str,
        discount_id: Optional[str],
    ) -> Booking:
        try:
            return self.booking_repository.create(
                product_type=config.product,
                status=status,
                lead_id=request.lead_id,
                payment_plan_id=request.payment_plan_id,
                discount_id=discount_id,
                total_students=len(request.students),
                seats_reserved=0,
                source=source,
                booked_by=booked_by,
                **config.booking_fields(request),
            )
        except IntegrityError as exc:
            # Lost a race on bookings.lead_id
            self.db.rollback()
            if request.lead_id and self.booking_repository.exists_for_lead(request.lead_id):
                raise DuplicateBookingError(request.lead_id) from exc
            raise PersistenceError("Failed to create booking", lead_id=request.lead_id) from exc

    def _create_people(
        self, config: ProductConfig, booking: Booking, request: BookingCreateRequest
    ) -> None:
        students = [
            self.booking_repository.add_student(booking, position, **config.student_fields(student))
            for position, student in enumerate(request.students)
        ]
        # Parents and the emergency contact hang off the first student
        anchor = students[0]
        for parent in request.parents:
            self.booking_repository.add_parent(anchor, **config.parent_fields(parent))
        if request.emergency is not None:
            self.booking_repository.add_emergency_contact(
                anchor, **config.emergency_fields(request.emergency)
            )

    # ------------------------------------------------------------------ #
    # Settlement
    # ------------------------------------------------------------------ #

    def _settle_with_reconciliation_log(
        self,
        config: ProductConfig,
        booking_id: str,
        outcome: ChargeOutcome,
        used_by: Optional[str],
    ) -> Booking:
        try:
            with self.transaction():
                return self._settle(config, booking_id, outcome, used_by)
        except PersistenceError:
            self.logger.critical(
                f"Failed to record payment outcome {outcome.status.value} for booking "
                f"{booking_id}; gateway reference {outcome.reference} needs reconciliation"
            )
            raise

    def _settle(
        self,
        config: ProductConfig,
        booking_id: str,
        outcome: ChargeOutcome,
        used_by: Optional[str],
    ) -> Booking:
        booking = self.booking_repository.get_for_update(booking_id)
        record = self.payment_repository.get_by_booking(booking_id)
        if booking is None or record is None:
            raise PersistenceError(
                "Booking disappeared before payment settlement", booking_id=booking_id
            )

        record.attempt_count = (record.attempt_count or 0) + 1
        record.gateway_customer_id = outcome.customer_id or record.gateway_customer_id
        record.gateway_card_id = outcome.card_id or record.gateway_card_id

        if not outcome.paid:
            record.status = PaymentRecordStatus.FAILED
            record.failure_reason = outcome.failure_reason
            self.payment_repository.flush()
            self.logger.warning(
                f"Payment failed for booking {booking_id}: {outcome.failure_reason}"
            )
            return booking

        now = datetime.now(timezone.utc)
        record.status = PaymentRecordStatus.PAID
        record.gateway_reference = outcome.reference
        record.failure_reason = None
        record.paid_at = now

        booking.transition_to(BookingStatus.ACTIVE, at=now)
        if config.uses_capacity:
            booking.seats_reserved = self._capacity(config).decrement_capacity(
                booking.class_schedule_id, booking.total_students
            )
            if booking.seats_reserved < booking.total_students:
                self.logger.error(
                    f"Booking {booking_id} was paid for {booking.total_students} seats but class "
                    f"{booking.class_schedule_id} only had {booking.seats_reserved} left; "
                    f"needs reconciliation"
                )
        if booking.discount_id:
            self.discount_repository.create_usage(
                discount_id=booking.discount_id,
                booking_id=booking.id,
                used_by=used_by,
                used_at=now,
            )
        self.booking_repository.flush()
        self._debug(f"booking {booking_id} settled as paid, seats_reserved={booking.seats_reserved}")
        return booking

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("booking.cancel")
    def cancel_booking(
        self,
        booking_id: str,
        reason: Optional[str] = None,
        cancelled_by: Optional[str] = None,
    ) -> Booking:
        """
        Cancel a booking and give back exactly the seats it took.

        Raises:
            BookingNotFoundError
            InvalidStatusTransitionError: Booking is already cancelled
        """
        with self.transaction():
            booking = self._get_booking_for_update(booking_id)
            booking.cancel(reason=reason, cancelled_by=cancelled_by)
            if booking.seats_reserved and booking.class_schedule_id:
                config = get_product_config(booking.product_type)
                self._capacity(config).restore_capacity(
                    booking.class_schedule_id, booking.seats_reserved
                )
                self._debug(f"booking {booking_id} returned {booking.seats_reserved} seats")
            booking.seats_reserved = 0
            self.booking_repository.flush()
        return booking

    @BaseService.measure_operation("booking.reactivate")
    def reactivate_booking(
        self, booking_id: str, reactivated_by: Optional[str] = None
    ) -> Booking:
        """
        Renew a cancelled booking that was paid for.

        Raises:
            BookingNotFoundError
            InvalidStatusTransitionError: Booking is not cancelled
            BusinessRuleException: Booking has no paid payment record
            InsufficientCapacityError: The class filled up in the meantime
        """
        with self.transaction():
            booking = self._get_booking_for_update(booking_id)
            if booking.status != BookingStatus.CANCELLED:
                raise InvalidStatusTransitionError(booking.id, booking.status, BookingStatus.ACTIVE)

            record = self.payment_repository.get_by_booking(booking_id)
            if record is None or record.status != PaymentRecordStatus.PAID:
                raise BusinessRuleException(
                    "Only paid bookings can be reactivated",
                    code="PAYMENT_REQUIRED",
                    details={
                        "booking_id": booking_id,
                        "payment_status": getattr(record, "status", None),
                    },
                )

            config = get_product_config(booking.product_type)
            if config.uses_capacity:
                capacity = self._capacity(config)
                capacity.check_capacity(booking.class_schedule_id, booking.total_students)
                booking.seats_reserved = capacity.decrement_capacity(
                    booking.class_schedule_id, booking.total_students
                )
            booking.transition_to(BookingStatus.ACTIVE)
            self.booking_repository.flush()

        self.logger.info(f"Booking {booking_id} reactivated by {reactivated_by or 'system'}")
        return booking

    @BaseService.measure_operation("booking.retry_payment")
    def retry_payment(
        self,
        booking_id: str,
        payment_details: Any,
        retried_by: Optional[str] = None,
    ) -> BookingResult:
        """
        Charge a pending booking whose previous payment attempt failed.

        Raises:
            BookingNotFoundError
            InvalidStatusTransitionError: Booking is not pending
            ConflictException: Payment record is not in a failed state
            InsufficientCapacityError: The class filled up since the failed attempt
        """
        with self.transaction():
            booking = self._get_booking_for_update(booking_id)
            if booking.status != BookingStatus.PENDING:
                raise InvalidStatusTransitionError(booking.id, booking.status, BookingStatus.ACTIVE)
            record = self.payment_repository.get_by_booking(booking_id)
            if record is None or record.status != PaymentRecordStatus.FAILED:
                raise ConflictException(
                    "Only failed payments can be retried",
                    code="PAYMENT_NOT_RETRYABLE",
                    details={
                        "booking_id": booking_id,
                        "payment_status": getattr(record, "status", None),
                    },
                )
            config = get_product_config(booking.product_type)
            if config.uses_capacity:
                self._capacity(config).check_capacity(
                    booking.class_schedule_id, booking.total_students
                )
            amounts = (record.base_amount, record.discount_amount, record.final_amount)

        outcome = self.orchestrator.charge(
            payment_details,
            amounts[2],
            config.charge_description(booking_id),
            metadata={"booking_id": booking_id, "product": config.product.value, "retry": "1"},
        )
        booking = self._settle_with_reconciliation_log(config, booking_id, outcome, retried_by)

        return BookingResult(
            success=True,
            booking_id=booking_id,
            product_type=config.product,
            status=booking.status,
            payment_status=outcome.status,
            gateway_reference=outcome.reference,
            base_amount=amounts[0],
            discount_amount=amounts[1],
            final_amount=amounts[2],
            failure_reason=outcome.failure_reason,
        )

    def get_payment_details(self, booking_id: str) -> Any:
        """Look up the gateway charge behind a booking's payment record."""
        record: Optional[PaymentRecord] = self.payment_repository.get_by_booking(booking_id)
        if record is None or not record.gateway_reference:
            raise NotFoundException(
                f"No gateway payment recorded for booking {booking_id}",
                code="PAYMENT_NOT_FOUND",
                details={"booking_id": booking_id},
            )
        return self.gateway.get_payment_details(record.gateway_reference)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _require_config(self) -> ProductConfig:
        if self.config is None:
            raise ValidationException(
                "A product must be selected to create a booking", code="PRODUCT_REQUIRED"
            )
        return self.config

    def _validate_request(
        self, config: ProductConfig, request: BookingCreateRequest, *, require_payment: bool
    ) -> None:
        if not request.students:
            raise ValidationException("At least one student is required", code="STUDENTS_REQUIRED")
        if config.uses_capacity and not request.class_schedule_id:
            raise ValidationException(
                f"class_schedule_id is required for {config.label} bookings",
                code="CLASS_SCHEDULE_REQUIRED",
            )
        if require_payment and request.payment is None:
            raise ValidationException(
                "Payment details are required", code="PAYMENT_DETAILS_REQUIRED"
            )
        if require_payment and request.emergency is None:
            raise ValidationException(
                "Emergency contact details are required", code="EMERGENCY_CONTACT_REQUIRED"
            )

    def _get_booking_for_update(self, booking_id: str) -> Booking:
        booking = self.booking_repository.get_for_update(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    def _capacity(self, config: ProductConfig) -> CapacityService:
        if config.capacity_factory is None:
            raise ValidationException(
                f"{config.label} bookings do not use class capacity", code="NO_CAPACITY_POOL"
            )
        return config.capacity_factory(self.db)

    @staticmethod
    def _resolve_source(request: BookingCreateRequest, lead: Optional[Lead]) -> str:
        source = request.source or (lead.source if lead is not None else None)
        return (source or DEFAULT_SOURCE).strip().lower()

    def _debug(self, message: str) -> None:
        if self.booking_debug:
            self.logger.info(f"[booking] {message}")
        else:
            self.logger.debug(message)
