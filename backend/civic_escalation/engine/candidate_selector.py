"""Candidate Selector - Load complaints the engine should consider"""
from datetime import datetime
from typing import List, Optional
from pymongo.errors import PyMongoError

from ..domain.enums import QUALIFYING_STATUSES
from ..domain.errors import CandidateLoadError
from ..domain.models import EscalationCandidate
from ..repositories.complaint_repo import ComplaintRepository
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class CandidateSelector:
    """Select every non-terminal complaint in a qualifying status"""

    def __init__(self, complaint_repo: Optional[ComplaintRepository] = None):
        self.complaint_repo = complaint_repo or ComplaintRepository()

    def select(self, now: Optional[datetime] = None) -> List[EscalationCandidate]:
        """
        Fetch candidates once for a cycle

        Raises:
            CandidateLoadError: If the complaint store is unreachable
        """
        try:
            candidates = self.complaint_repo.get_escalation_candidates(QUALIFYING_STATUSES)
        except PyMongoError as e:
            raise CandidateLoadError(
                "Failed to load escalation candidates",
                details={"error": str(e)}
            ) from e

        now = now or utc_now()
        for candidate in candidates:
            logger.debug(
                "Escalation candidate",
                extra={
                    "complaint_id": candidate.complaint_id,
                    "status": candidate.current_status.value,
                    "department_id": candidate.assigned_department_id,
                    "location_id": candidate.location_id,
                    "minutes_since_status_change": round(candidate.minutes_since_status_change(now), 1),
                }
            )
        return candidates
