"""Escalation Repository - Data access for escalation records (append-only)"""
from typing import List, Optional
from datetime import datetime, timedelta
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING

from .mongo_client import get_collection, to_document, COMPLAINT_ESCALATIONS
from ..domain.models import ComplaintEscalation
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class EscalationRepository:
    """Repository for complaint escalation records"""

    def __init__(self, collection: Optional[Collection] = None):
        self._escalations: Collection = (
            collection if collection is not None else get_collection(COMPLAINT_ESCALATIONS)
        )

    def get_last_escalation_level(self, complaint_id: str) -> Optional[int]:
        """Highest stored (pre-escalation) level, or None if never escalated"""
        doc = self._escalations.find_one(
            {"complaint_id": complaint_id},
            projection={"escalation_level": 1},
            sort=[("escalation_level", DESCENDING)]
        )
        if not doc:
            return None
        return int(doc["escalation_level"])

    def get_current_level(self, complaint_id: str) -> int:
        """
        Derive the complaint's current level from escalation history.

        Stored levels are the level a complaint was at *before* each
        escalation, so the current level is one above the highest of them.
        """
        last_level = self.get_last_escalation_level(complaint_id)
        if last_level is None:
            return 0
        return last_level + 1

    def has_existing_escalation(
        self,
        complaint_id: str,
        level: int,
        within_hours: float,
        now: Optional[datetime] = None
    ) -> bool:
        """Check for an escalation at ``level`` created within the window"""
        cutoff = (now or utc_now()) - timedelta(hours=within_hours)
        count = self._escalations.count_documents(
            {
                "complaint_id": complaint_id,
                "escalation_level": level,
                "created_at": {"$gt": cutoff},
            },
            limit=1
        )
        return count > 0

    def create_escalation(self, escalation: ComplaintEscalation) -> ComplaintEscalation:
        """Insert an escalation record"""
        self._escalations.insert_one(to_document(escalation, escalation.escalation_id))
        logger.info(
            f"Created escalation record at level {escalation.escalation_level}",
            extra={
                "complaint_id": escalation.complaint_id,
                "escalation_id": escalation.escalation_id,
                "escalation_level": escalation.escalation_level,
            }
        )
        return escalation

    def list_escalations_for_complaint(self, complaint_id: str) -> List[ComplaintEscalation]:
        """Get a complaint's escalations, oldest first"""
        cursor = self._escalations.find({"complaint_id": complaint_id}).sort("created_at", ASCENDING)

        escalations = []
        for doc in cursor:
            doc.pop("_id", None)
            escalations.append(ComplaintEscalation.model_validate(doc))
        return escalations
