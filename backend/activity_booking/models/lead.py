# backend/activity_booking/models/lead.py
"""Sales lead that a booking converts."""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import LeadStatus, ProductType
from ..database import Base
from .base_enum import create_safe_enum


class Lead(Base):
    """
    Upstream sales record.

    A lead is converted into at most one booking; the ``bookings.lead_id``
    unique constraint enforces this at the database level.
    """

    __tablename__ = "leads"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    product_type = Column(create_safe_enum(ProductType, "lead_product_type"), nullable=True)
    source = Column(String(50), nullable=True)  # website, admin, referral
    status = Column(
        create_safe_enum(LeadStatus, "lead_status"),
        nullable=False,
        default=LeadStatus.NEW,
    )
    parent_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    booking = relationship("Booking", back_populates="lead", uselist=False)

    def __repr__(self) -> str:
        return f"<Lead {self.id} status={self.status}>"
