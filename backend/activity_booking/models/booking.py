# backend/activity_booking/models/booking.py
"""
Booking aggregate for birthday parties, one-to-one coaching and holiday camps.

A booking owns its students; parents and the emergency contact hang off the
first student. The status column only moves along the transition table in
``core.enums``; use ``Booking.transition_to`` instead of assigning it.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import BookingStatus, ProductType, can_transition
from ..core.exceptions import InvalidStatusTransitionError
from ..database import Base
from .base_enum import create_safe_enum

logger = logging.getLogger(__name__)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    product_type = Column(
        create_safe_enum(ProductType, "booking_product_type"), nullable=False, index=True
    )
    status = Column(
        create_safe_enum(BookingStatus, "booking_status"),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )

    # One booking per lead
    lead_id = Column(String(26), ForeignKey("leads.id"), nullable=True, unique=True)
    payment_plan_id = Column(String(26), ForeignKey("payment_plans.id"), nullable=True)
    discount_id = Column(String(26), ForeignKey("discounts.id"), nullable=True)
    class_schedule_id = Column(String(26), ForeignKey("class_schedules.id"), nullable=True)

    # Product-specific details
    venue_id = Column(String(26), nullable=True)
    holiday_camp_id = Column(String(26), nullable=True)
    coach_id = Column(String(26), nullable=True)
    address = Column(Text, nullable=True)
    session_date = Column(Date, nullable=True)
    session_time = Column(String(20), nullable=True)
    area_work_on = Column(Text, nullable=True)

    total_students = Column(Integer, nullable=False, default=0)
    # Seats actually taken from the class schedule; restored on cancellation
    seats_reserved = Column(Integer, nullable=False, default=0)

    source = Column(String(50), nullable=True)
    booked_by = Column(String(255), nullable=True)

    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(String(255), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    activated_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    lead = relationship("Lead", back_populates="booking")
    payment_plan = relationship("PaymentPlan")
    discount = relationship("Discount")
    class_schedule = relationship("ClassSchedule")
    students = relationship(
        "BookingStudent",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingStudent.position",
    )
    payment_record = relationship(
        "PaymentRecord", back_populates="booking", uselist=False, cascade="all, delete-orphan"
    )
    discount_usages = relationship("DiscountUsage", back_populates="booking")

    __table_args__ = (
        CheckConstraint("total_students >= 0", name="ck_bookings_total_students_non_negative"),
        CheckConstraint("seats_reserved >= 0", name="ck_bookings_seats_reserved_non_negative"),
        Index("ix_bookings_product_status", "product_type", "status"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING
        if self.seats_reserved is None:
            self.seats_reserved = 0

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: product={self.product_type}, status={self.status}, "
            f"lead={self.lead_id}, students={self.total_students}>"
        )

    def can_transition_to(self, target: BookingStatus) -> bool:
        return can_transition(self.status, target)

    def transition_to(self, target: BookingStatus, *, at: Optional[datetime] = None) -> None:
        """
        Move the booking to ``target`` if the transition table allows it.

        Raises:
            InvalidStatusTransitionError: If the move is not allowed
        """
        if not self.can_transition_to(target):
            raise InvalidStatusTransitionError(self.id, self.status, target)

        when = at or datetime.now(timezone.utc)
        previous = self.status
        self.status = target
        if target == BookingStatus.ACTIVE:
            self.activated_at = when
            self.cancelled_at = None
            self.cancellation_reason = None
            self.cancelled_by = None
        elif target == BookingStatus.CANCELLED:
            self.cancelled_at = when
        logger.info(f"Booking {self.id} moved from {previous} to {target}")

    def cancel(self, reason: Optional[str] = None, cancelled_by: Optional[str] = None) -> None:
        self.transition_to(BookingStatus.CANCELLED)
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by

    @property
    def first_student(self) -> Optional["BookingStudent"]:
        return self.students[0] if self.students else None


class BookingStudent(Base):
    __tablename__ = "booking_students"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(String(20), nullable=True)
    medical_information = Column(Text, nullable=True)
    attendance = Column(String(20), nullable=False, default="pending")

    booking = relationship("Booking", back_populates="students")
    parents = relationship(
        "BookingParent", back_populates="student", cascade="all, delete-orphan"
    )
    emergency_contact = relationship(
        "BookingEmergencyContact",
        back_populates="student",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_booking_students_identity", "first_name", "last_name", "date_of_birth"),
    )


class BookingParent(Base):
    __tablename__ = "booking_parents"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    student_id = Column(
        String(26), ForeignKey("booking_students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    relation_to_child = Column(String(50), nullable=True)
    how_did_you_hear = Column(String(255), nullable=True)

    student = relationship("BookingStudent", back_populates="parents")


class BookingEmergencyContact(Base):
    __tablename__ = "booking_emergency_contacts"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    student_id = Column(
        String(26),
        ForeignKey("booking_students.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    phone_number = Column(String(50), nullable=True)
    relation = Column(String(50), nullable=True)

    student = relationship("BookingStudent", back_populates="emergency_contact")
