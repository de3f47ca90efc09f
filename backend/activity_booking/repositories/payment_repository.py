# backend/activity_booking/repositories/payment_repository.py
"""
Payment Repository for the activity booking platform.

Data access for payment plans and the per-booking payment record.
"""

from decimal import Decimal
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import PaymentRecordStatus
from ..core.exceptions import RepositoryException
from ..models.payment import PaymentPlan, PaymentRecord
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PaymentRepository(BaseRepository[PaymentRecord]):
    def __init__(self, db: Session):
        super().__init__(db, PaymentRecord)
        self.logger = logging.getLogger(__name__)

    # Payment plans

    def get_plan(self, plan_id: str) -> Optional[PaymentPlan]:
        try:
            return self.db.query(PaymentPlan).filter(PaymentPlan.id == plan_id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading payment plan {plan_id}: {str(e)}")
            raise RepositoryException(f"Failed to load payment plan: {str(e)}") from e

    # Payment records

    def create_payment_record(
        self,
        *,
        booking_id: str,
        base_amount: Decimal,
        discount_amount: Decimal,
        final_amount: Decimal,
        currency: str,
        status: PaymentRecordStatus = PaymentRecordStatus.PENDING,
    ) -> PaymentRecord:
        """
        Create the payment record for a booking.

        Raises:
            RepositoryException: If the booking already has a record or the insert fails
        """
        try:
            record = PaymentRecord(
                booking_id=booking_id,
                base_amount=base_amount,
                discount_amount=discount_amount,
                final_amount=final_amount,
                currency=currency,
                status=status,
                attempt_count=0,
            )
            self.db.add(record)
            self.db.flush()
            return record
        except IntegrityError as e:
            self.logger.error(f"Payment record already exists for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Payment record already exists: {str(e)}") from e
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating payment record: {str(e)}")
            raise RepositoryException(f"Failed to create payment record: {str(e)}") from e

    def get_by_booking(self, booking_id: str) -> Optional[PaymentRecord]:
        try:
            return (
                self.db.query(PaymentRecord).filter(PaymentRecord.booking_id == booking_id).first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading payment record for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to load payment record: {str(e)}") from e
