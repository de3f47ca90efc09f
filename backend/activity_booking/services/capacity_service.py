# backend/activity_booking/services/capacity_service.py
"""
Seat accounting for products backed by a finite class schedule.

Methods only flush; the calling service owns the unit of work.
"""

from typing import Optional

from sqlalchemy.orm import Session

from ..core.exceptions import (
    CapacityStillAvailableError,
    InsufficientCapacityError,
    InvalidClassScheduleError,
)
from ..models.class_schedule import ClassSchedule
from ..repositories.class_schedule_repository import ClassScheduleRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService


class CapacityService(BaseService):
    def __init__(
        self, db: Session, class_schedule_repository: Optional[ClassScheduleRepository] = None
    ) -> None:
        super().__init__(db)
        self.class_schedule_repository = (
            class_schedule_repository
            or RepositoryFactory.create_class_schedule_repository(db)
        )

    def _get_schedule(self, class_schedule_id: Optional[str], *, lock: bool = False) -> ClassSchedule:
        if not class_schedule_id:
            raise InvalidClassScheduleError(class_schedule_id)
        if lock:
            schedule = self.class_schedule_repository.get_for_update(class_schedule_id)
        else:
            schedule = self.class_schedule_repository.get_by_id(class_schedule_id)
        if schedule is None:
            raise InvalidClassScheduleError(class_schedule_id)
        return schedule

    def check_capacity(self, class_schedule_id: Optional[str], requested_seats: int) -> int:
        """
        Verify the schedule can seat ``requested_seats``.

        Returns:
            Seats currently remaining

        Raises:
            InvalidClassScheduleError: Unknown schedule
            InsufficientCapacityError: Not enough seats left
        """
        schedule = self._get_schedule(class_schedule_id)
        available = schedule.capacity or 0
        if requested_seats > available:
            raise InsufficientCapacityError(schedule.id, available, requested_seats)
        return available

    def decrement_capacity(self, class_schedule_id: Optional[str], seats: int) -> int:
        """
        Take ``seats`` from the pool.

        The row is re-read under a lock and the subtraction is a guarded
        ``UPDATE``, so seats taken by other bookings while a charge was in
        flight are never overwritten. The pool is floored at zero: if fewer
        seats remain than requested only the remaining seats are taken.

        Returns:
            Seats actually taken
        """
        requested = max(seats, 0)
        while True:
            schedule = self._get_schedule(class_schedule_id, lock=True)
            available = schedule.capacity or 0
            taken = min(requested, available)
            if taken == 0 or self.class_schedule_repository.take_seats(schedule.id, taken):
                break
            self.logger.info(f"Class schedule {schedule.id} changed concurrently; re-reading")

        if taken < requested:
            self.logger.warning(
                f"Class schedule {schedule.id} had {available} seats left for {requested} "
                f"paid students; capacity floored at zero"
            )
        schedule = self._get_schedule(class_schedule_id, lock=True)
        self.logger.info(
            f"Class schedule {schedule.id} capacity {available} -> {schedule.capacity}"
        )
        return taken

    def restore_capacity(self, class_schedule_id: Optional[str], seats: int) -> int:
        """
        Give ``seats`` back to the pool, capped at ``total_capacity`` when set.

        Returns:
            Remaining capacity after the restore
        """
        schedule = self._get_schedule(class_schedule_id, lock=True)
        restored = (schedule.capacity or 0) + max(seats, 0)
        if schedule.total_capacity is not None and restored > schedule.total_capacity:
            self.logger.warning(
                f"Restoring {seats} seats would exceed total capacity of schedule "
                f"{schedule.id}; capped at {schedule.total_capacity}"
            )
            restored = schedule.total_capacity
        schedule.capacity = restored
        self.class_schedule_repository.flush()
        return restored

    def ensure_waiting_list_allowed(self, class_schedule_id: Optional[str]) -> None:
        """Waiting-list entries are only accepted once the class is full."""
        schedule = self._get_schedule(class_schedule_id)
        if (schedule.capacity or 0) > 0:
            raise CapacityStillAvailableError(schedule.id, schedule.capacity)
