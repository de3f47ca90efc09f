# backend/activity_booking/repositories/lead_repository.py
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import LeadStatus
from ..core.exceptions import RepositoryException
from ..models.lead import Lead
from .base_repository import BaseRepository


class LeadRepository(BaseRepository[Lead]):
    def __init__(self, db: Session):
        super().__init__(db, Lead)

    def mark_active(self, lead_id: str) -> Optional[Lead]:
        """Flag a lead as converted. Returns None if the lead does not exist."""
        try:
            lead = self.db.query(Lead).filter(Lead.id == lead_id).first()
            if lead is None:
                return None
            lead.status = LeadStatus.ACTIVE
            self.db.flush()
            return lead
        except SQLAlchemyError as e:
            self.logger.error(f"Error activating lead {lead_id}: {str(e)}")
            raise RepositoryException(f"Failed to activate lead: {str(e)}") from e
