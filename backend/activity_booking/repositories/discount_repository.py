# backend/activity_booking/repositories/discount_repository.py
"""
Discount Repository for the activity booking platform.

Handles discount lookup with targets and the usage audit trail used to
enforce total and per-customer usage caps.
"""

from datetime import date, datetime, timezone
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.booking import Booking, BookingStudent
from ..models.discount import Discount, DiscountUsage
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class DiscountRepository(BaseRepository[Discount]):
    def __init__(self, db: Session):
        super().__init__(db, Discount)
        self.logger = logging.getLogger(__name__)

    def get_with_targets(self, discount_id: str) -> Optional[Discount]:
        try:
            return (
                self.db.query(Discount)
                .options(selectinload(Discount.targets))
                .filter(Discount.id == discount_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading discount {discount_id}: {str(e)}")
            raise RepositoryException(f"Failed to load discount: {str(e)}") from e

    def count_usages(self, discount_id: str) -> int:
        """Number of recorded (paid) uses of a discount."""
        try:
            return (
                self.db.query(func.count(DiscountUsage.id))
                .filter(DiscountUsage.discount_id == discount_id)
                .scalar()
                or 0
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting usages for discount {discount_id}: {str(e)}")
            raise RepositoryException(f"Failed to count discount usages: {str(e)}") from e

    def count_usages_for_student(
        self,
        discount_id: str,
        first_name: str,
        last_name: Optional[str],
        date_of_birth: Optional[date],
    ) -> int:
        """
        Count paid uses of a discount by bookings whose lead student matches.

        A customer is identified by the first student's first name, last name
        and date of birth; names compare case-insensitively.
        """
        try:
            query = (
                self.db.query(func.count(func.distinct(DiscountUsage.id)))
                .join(Booking, Booking.id == DiscountUsage.booking_id)
                .join(BookingStudent, BookingStudent.booking_id == Booking.id)
                .filter(
                    DiscountUsage.discount_id == discount_id,
                    BookingStudent.position == 0,
                    func.lower(BookingStudent.first_name) == first_name.strip().lower(),
                )
            )
            if last_name:
                query = query.filter(
                    func.lower(BookingStudent.last_name) == last_name.strip().lower()
                )
            else:
                query = query.filter(BookingStudent.last_name.is_(None))
            if date_of_birth is None:
                query = query.filter(BookingStudent.date_of_birth.is_(None))
            else:
                query = query.filter(BookingStudent.date_of_birth == date_of_birth)
            return query.scalar() or 0
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting student usages for discount {discount_id}: {str(e)}")
            raise RepositoryException(f"Failed to count discount usages: {str(e)}") from e

    def create_usage(
        self,
        *,
        discount_id: str,
        booking_id: str,
        used_by: Optional[str],
        used_at: Optional[datetime] = None,
    ) -> DiscountUsage:
        try:
            usage = DiscountUsage(
                discount_id=discount_id,
                booking_id=booking_id,
                used_by=used_by,
                used_at=used_at or datetime.now(timezone.utc),
            )
            self.db.add(usage)
            self.db.flush()
            return usage
        except SQLAlchemyError as e:
            self.logger.error(f"Error recording usage of discount {discount_id}: {str(e)}")
            raise RepositoryException(f"Failed to record discount usage: {str(e)}") from e
