# backend/activity_booking/models/base_enum.py
"""
Safe enum helpers for SQLAlchemy.

SQLAlchemy's ``Enum`` type persists member NAMES by default ('ACTIVE'),
while API payloads, raw SQL and the status transition table all use the
VALUES ('active'). Columns built with ``create_safe_enum`` store values.

Usage:
    from activity_booking.models.base_enum import create_safe_enum

    class Booking(Base):
        status = Column(
            create_safe_enum(BookingStatus, "booking_status"),
            nullable=False,
            default=BookingStatus.PENDING,
        )
"""

from enum import Enum
from typing import Sequence, Type

from sqlalchemy import Enum as SAEnum


def create_safe_enum(
    enum_class: Type[Enum],
    name: str,
    *,
    native_enum: bool = False,
    validate_strings: bool = True,
) -> SAEnum:
    """
    Create a SQLAlchemy Enum that stores enum values (not names).

    Args:
        enum_class: The Python Enum class to use
        name: Database type / constraint name
        native_enum: Whether to use a native database enum type (default False,
                     values are stored as VARCHAR)
        validate_strings: Whether to reject unknown string values on assignment

    Returns:
        SQLAlchemy Enum column type configured for value-based storage
    """
    return SAEnum(
        enum_class,
        name=name,
        native_enum=native_enum,
        create_constraint=not native_enum,
        validate_strings=validate_strings,
        values_callable=_get_enum_values,
        length=32,
    )


def _get_enum_values(enum_class: Type[Enum]) -> Sequence[str]:
    return [member.value for member in enum_class]
