# backend/activity_booking/models/discount.py
"""Discount codes, their product targets and usage audit rows."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import DiscountValueType
from ..database import Base
from .base_enum import create_safe_enum


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on round trip
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class Discount(Base):
    """A discount code with a validity window and optional usage caps."""

    __tablename__ = "discounts"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    code = Column(String(64), nullable=False, unique=True, index=True)
    value_type = Column(create_safe_enum(DiscountValueType, "discount_value_type"), nullable=False)
    value = Column(Numeric(10, 2), nullable=False)
    start_datetime = Column(DateTime(timezone=True), nullable=True)
    end_datetime = Column(DateTime(timezone=True), nullable=True)
    limit_total_uses = Column(Integer, nullable=True)
    limit_per_customer = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    targets = relationship("DiscountTarget", back_populates="discount", cascade="all, delete-orphan")
    usages = relationship("DiscountUsage", back_populates="discount")

    __table_args__ = (
        CheckConstraint("value >= 0", name="ck_discounts_value_non_negative"),
        CheckConstraint(
            "limit_total_uses IS NULL OR limit_total_uses >= 0",
            name="ck_discounts_limit_total_uses",
        ),
    )

    @property
    def starts_at(self) -> Optional[datetime]:
        return _as_utc(self.start_datetime)

    @property
    def ends_at(self) -> Optional[datetime]:
        return _as_utc(self.end_datetime)

    @property
    def target_tags(self) -> set[str]:
        return {target.target for target in self.targets}

    def __repr__(self) -> str:
        return f"<Discount {self.code} {self.value_type}={self.value}>"


class DiscountTarget(Base):
    """Product tag a discount applies to (e.g. ``birthday_party``)."""

    __tablename__ = "discount_targets"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    discount_id = Column(
        String(26), ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target = Column(String(50), nullable=False)

    discount = relationship("Discount", back_populates="targets")

    __table_args__ = (UniqueConstraint("discount_id", "target", name="uq_discount_targets"),)


class DiscountUsage(Base):
    """Audit row written only when a discounted booking was actually paid."""

    __tablename__ = "discount_usages"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    discount_id = Column(String(26), ForeignKey("discounts.id"), nullable=False, index=True)
    booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=False, index=True)
    used_by = Column(String(255), nullable=True)
    used_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    discount = relationship("Discount", back_populates="usages")
    booking = relationship("Booking", back_populates="discount_usages")

    __table_args__ = (
        UniqueConstraint("discount_id", "booking_id", name="uq_discount_usages_booking"),
    )
