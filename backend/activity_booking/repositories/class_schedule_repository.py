# backend/activity_booking/repositories/class_schedule_repository.py
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.class_schedule import ClassSchedule
from .base_repository import BaseRepository


class ClassScheduleRepository(BaseRepository[ClassSchedule]):
    def __init__(self, db: Session):
        super().__init__(db, ClassSchedule)

    def get_for_update(self, class_schedule_id: str) -> Optional[ClassSchedule]:
        """
        Load a schedule row with a write lock, overwriting any copy already
        held in the session.

        SQLite has no row locks; there the plain SELECT is used and writers are
        serialised by the database file lock instead.
        """
        try:
            query = (
                self.db.query(ClassSchedule)
                .filter(ClassSchedule.id == class_schedule_id)
                .populate_existing()
            )
            if self.dialect_name != "sqlite":
                query = query.with_for_update()
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking class schedule {class_schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock class schedule: {str(e)}") from e

    def take_seats(self, class_schedule_id: str, seats: int) -> bool:
        """
        Atomically subtract ``seats`` if at least that many remain.

        Returns False when another writer got there first; the caller reloads
        and decides again.
        """
        try:
            result = self.db.execute(
                update(ClassSchedule)
                .where(ClassSchedule.id == class_schedule_id, ClassSchedule.capacity >= seats)
                .values(capacity=ClassSchedule.capacity - seats)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error taking seats from class schedule {class_schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to update class capacity: {str(e)}") from e
