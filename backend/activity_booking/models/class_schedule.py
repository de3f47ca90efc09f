# backend/activity_booking/models/class_schedule.py
"""Scheduled holiday-camp class acting as a finite seat pool."""

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.sql import func
import ulid

from ..database import Base


class ClassSchedule(Base):
    __tablename__ = "class_schedules"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    class_name = Column(String(255), nullable=False)
    venue_id = Column(String(26), nullable=True)
    holiday_camp_id = Column(String(26), nullable=True, index=True)
    capacity = Column(Integer, nullable=False, default=0)  # seats remaining
    total_capacity = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("capacity >= 0", name="ck_class_schedules_capacity_non_negative"),
        CheckConstraint(
            "total_capacity IS NULL OR capacity <= total_capacity",
            name="ck_class_schedules_capacity_within_total",
        ),
    )

    def __repr__(self) -> str:
        return f"<ClassSchedule {self.id} {self.class_name} capacity={self.capacity}>"
