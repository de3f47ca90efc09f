# backend/activity_booking/repositories/booking_repository.py
"""
Booking Repository for the activity booking platform.

Creates the booking aggregate (booking, students, parents, emergency
contact) and answers the duplicate-guard queries. Nothing here commits.
"""

import logging
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.booking import (
    Booking,
    BookingEmergencyContact,
    BookingParent,
    BookingStudent,
)
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking aggregate data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def create(self, **kwargs: Any) -> Booking:
        """Create a booking, exposing integrity errors for conflict handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def exists_for_lead(self, lead_id: str) -> bool:
        try:
            return self.db.query(Booking.id).filter(Booking.lead_id == lead_id).first() is not None
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking bookings for lead {lead_id}: {str(e)}")
            raise RepositoryException(f"Failed to check lead bookings: {str(e)}") from e

    def get_by_lead(self, lead_id: str) -> Optional[Booking]:
        try:
            return self.db.query(Booking).filter(Booking.lead_id == lead_id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading booking for lead {lead_id}: {str(e)}")
            raise RepositoryException(f"Failed to load booking for lead: {str(e)}") from e

    def add_student(self, booking: Booking, position: int, **fields: Any) -> BookingStudent:
        try:
            student = BookingStudent(booking_id=booking.id, position=position, **fields)
            self.db.add(student)
            self.db.flush()
            return student
        except SQLAlchemyError as e:
            self.logger.error(f"Error adding student to booking {booking.id}: {str(e)}")
            raise RepositoryException(f"Failed to create student: {str(e)}") from e

    def add_parent(self, student: BookingStudent, **fields: Any) -> BookingParent:
        try:
            parent = BookingParent(student_id=student.id, **fields)
            self.db.add(parent)
            self.db.flush()
            return parent
        except SQLAlchemyError as e:
            self.logger.error(f"Error adding parent to student {student.id}: {str(e)}")
            raise RepositoryException(f"Failed to create parent: {str(e)}") from e

    def add_emergency_contact(
        self, student: BookingStudent, **fields: Any
    ) -> BookingEmergencyContact:
        try:
            contact = BookingEmergencyContact(student_id=student.id, **fields)
            self.db.add(contact)
            self.db.flush()
            return contact
        except SQLAlchemyError as e:
            self.logger.error(f"Error adding emergency contact to student {student.id}: {str(e)}")
            raise RepositoryException(f"Failed to create emergency contact: {str(e)}") from e

    def get_for_update(self, booking_id: str) -> Optional[Booking]:
        """Load a booking for a status change, locking the row where supported."""
        try:
            query = (
                self.db.query(Booking).filter(Booking.id == booking_id).populate_existing()
            )
            if self.dialect_name != "sqlite":
                query = query.with_for_update()
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to load booking: {str(e)}") from e

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(Booking.students).selectinload(BookingStudent.parents),
            selectinload(Booking.students).selectinload(BookingStudent.emergency_contact),
            selectinload(Booking.payment_record),
        )
