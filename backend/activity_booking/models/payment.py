# backend/activity_booking/models/payment.py
"""
Payment plans and per-booking payment records.

Amounts are stored as ``Numeric(10, 2)`` and handled as ``Decimal``; the
conversion to gateway minor units happens in the pricing service.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..core.enums import PaymentRecordStatus, ProductType
from ..database import Base
from .base_enum import create_safe_enum

if TYPE_CHECKING:
    from .booking import Booking


class PaymentPlan(Base):
    """Priced plan a booking is sold under."""

    __tablename__ = "payment_plans"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    # None means the plan can be sold with any product
    product_type: Mapped[Optional[ProductType]] = mapped_column(
        create_safe_enum(ProductType, "payment_plan_product_type"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (CheckConstraint("price >= 0", name="ck_payment_plans_price_non_negative"),)

    def __repr__(self) -> str:
        return f"<PaymentPlan {self.id} {self.title} price={self.price}>"


class PaymentRecord(Base):
    """Settlement state of the single charge attached to a booking."""

    __tablename__ = "payment_records"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    base_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    final_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="usd")
    status: Mapped[PaymentRecordStatus] = mapped_column(
        create_safe_enum(PaymentRecordStatus, "payment_record_status"),
        nullable=False,
        default=PaymentRecordStatus.PENDING,
        index=True,
    )
    gateway_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    gateway_customer_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    gateway_card_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    attempt_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=func.now()
    )

    booking: Mapped["Booking"] = relationship("Booking", back_populates="payment_record")

    __table_args__ = (
        CheckConstraint("final_amount >= 0", name="ck_payment_records_final_non_negative"),
        CheckConstraint("discount_amount >= 0", name="ck_payment_records_discount_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<PaymentRecord booking={self.booking_id} final={self.final_amount} "
            f"status={self.status}>"
        )
