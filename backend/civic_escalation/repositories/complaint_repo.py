"""Complaint Repository - Data access for complaints and status history

Every write here is its own atomic statement; the engine never holds a
transaction across steps. Escalation claims use find_one_and_update so two
engine processes cannot execute the same complaint at once.
"""
from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime, timedelta
from pymongo.collection import Collection
from pymongo import ReturnDocument
from pydantic import ValidationError as PydanticValidationError

from .mongo_client import get_collection, to_document, COMPLAINTS, COMPLAINT_STATUS_HISTORY
from ..domain.models import Complaint, ComplaintStatusHistory, EscalationCandidate
from ..domain.enums import ComplaintStatus, TERMINAL_STATUSES
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class ComplaintRepository:
    """Repository for complaint and status history operations"""

    def __init__(
        self,
        complaints: Optional[Collection] = None,
        status_history: Optional[Collection] = None
    ):
        self._complaints: Collection = complaints if complaints is not None else get_collection(COMPLAINTS)
        self._history: Collection = (
            status_history if status_history is not None else get_collection(COMPLAINT_STATUS_HISTORY)
        )

    # =========================================================================
    # Complaint Operations
    # =========================================================================

    def get_complaint(self, complaint_id: str) -> Optional[Complaint]:
        """Get complaint by ID"""
        doc = self._complaints.find_one({"complaint_id": complaint_id})
        if doc:
            doc.pop("_id", None)
            return Complaint.model_validate(doc)
        return None

    def get_escalation_candidates(
        self,
        statuses: Optional[Iterable[ComplaintStatus]] = None
    ) -> List[EscalationCandidate]:
        """
        Get every non-terminal complaint, oldest first, with its computed
        last status change time.

        No recency window is applied here; timing is decided by the
        condition evaluator. Documents that fail validation are logged and left out.

        Args:
            statuses: Optional qualifying statuses to restrict the selection to

        Returns:
            List of escalation candidates
        """
        status_filter: Dict[str, Any] = {"$nin": [s.value for s in TERMINAL_STATUSES]}
        if statuses is not None:
            status_filter["$in"] = [ComplaintStatus(s).value for s in statuses]

        pipeline: List[Dict[str, Any]] = [
            {"$match": {"current_status": status_filter}},
            {
                "$lookup": {
                    "from": COMPLAINT_STATUS_HISTORY,
                    "let": {"cid": "$complaint_id"},
                    "pipeline": [
                        {"$match": {"$expr": {"$eq": ["$complaint_id", "$$cid"]}}},
                        {"$group": {"_id": None, "last_change": {"$max": "$created_at"}}},
                    ],
                    "as": "_status_changes",
                }
            },
            {
                "$addFields": {
                    "last_status_change_at": {
                        "$ifNull": [
                            {"$arrayElemAt": ["$_status_changes.last_change", 0]},
                            "$created_at",
                        ]
                    }
                }
            },
            {"$project": {"_id": 0, "_status_changes": 0}},
            {"$sort": {"created_at": 1}},
        ]

        candidates = []
        for doc in self._complaints.aggregate(pipeline):
            try:
                candidates.append(EscalationCandidate.model_validate(doc))
            except PydanticValidationError as e:
                # One bad document must not hold back every other complaint
                logger.error(
                    f"Skipping malformed complaint document: {e.error_count()} error(s)",
                    extra={"complaint_id": doc.get("complaint_id"), "error": str(e)}
                )
        return candidates

    def update_complaint_assignment(
        self,
        complaint_id: str,
        new_status: ComplaintStatus,
        department_id: Optional[int],
        officer_id: Optional[int],
        now: Optional[datetime] = None
    ) -> bool:
        """
        Set status and assignment in one statement.

        Returns:
            True if the complaint was found
        """
        result = self._complaints.update_one(
            {"complaint_id": complaint_id},
            {
                "$set": {
                    "current_status": ComplaintStatus(new_status).value,
                    "assigned_department_id": department_id,
                    "assigned_officer_id": officer_id,
                    "updated_at": now or utc_now(),
                }
            }
        )
        return result.matched_count > 0

    def restore_complaint_assignment(
        self,
        complaint_id: str,
        status: ComplaintStatus,
        department_id: Optional[int],
        officer_id: Optional[int],
        updated_at: Optional[datetime]
    ) -> None:
        """Put back fields overwritten by a failed escalation attempt"""
        self._complaints.update_one(
            {"complaint_id": complaint_id},
            {
                "$set": {
                    "current_status": ComplaintStatus(status).value,
                    "assigned_department_id": department_id,
                    "assigned_officer_id": officer_id,
                    "updated_at": updated_at,
                }
            }
        )

    def update_escalation_level(self, complaint_id: str, level: int) -> bool:
        """Refresh the cached escalation level; never lowers it"""
        result = self._complaints.update_one(
            {
                "complaint_id": complaint_id,
                "$or": [
                    {"current_escalation_level": {"$lt": level}},
                    {"current_escalation_level": None},
                ]
            },
            {"$set": {"current_escalation_level": level}}
        )
        return result.matched_count > 0

    # =========================================================================
    # Escalation Claims
    # =========================================================================

    def acquire_escalation_lock(
        self,
        complaint_id: str,
        expected_status: ComplaintStatus,
        lock_by: str,
        lock_duration_seconds: int = 120,
        now: Optional[datetime] = None
    ) -> bool:
        """
        Claim a complaint for escalation with an atomic compare-and-swap.

        The claim only succeeds while the complaint still has the status the
        candidate was selected with and no other live claim exists.

        Args:
            complaint_id: The complaint to claim
            expected_status: Status seen when the candidate was selected
            lock_by: Identifier of this engine process
            lock_duration_seconds: Claim expiry, so a crashed holder cannot block forever

        Returns:
            True if the claim was acquired
        """
        now = now or utc_now()
        lock_until = now + timedelta(seconds=lock_duration_seconds)

        result = self._complaints.find_one_and_update(
            {
                "complaint_id": complaint_id,
                "current_status": ComplaintStatus(expected_status).value,
                "$or": [
                    {"escalation_lock_until": {"$lte": now}},
                    {"escalation_lock_until": None},
                ]
            },
            {
                "$set": {
                    "escalation_lock_until": lock_until,
                    "escalation_locked_by": lock_by,
                }
            },
            return_document=ReturnDocument.BEFORE
        )

        if result:
            logger.debug(
                "Escalation claim acquired",
                extra={"complaint_id": complaint_id, "server_id": lock_by}
            )
            return True

        logger.debug(
            "Could not claim complaint - status changed or claimed elsewhere",
            extra={"complaint_id": complaint_id, "server_id": lock_by}
        )
        return False

    def release_escalation_lock(self, complaint_id: str, lock_by: str) -> bool:
        """Release a claim held by ``lock_by``"""
        result = self._complaints.update_one(
            {"complaint_id": complaint_id, "escalation_locked_by": lock_by},
            {"$set": {"escalation_lock_until": None, "escalation_locked_by": None}}
        )
        return result.modified_count > 0

    # =========================================================================
    # Status History Operations
    # =========================================================================

    def create_status_history(self, history: ComplaintStatusHistory) -> ComplaintStatusHistory:
        """Append a status history row (immutable)"""
        self._history.insert_one(to_document(history, history.history_id))
        logger.debug(
            f"Status history: {history.old_status} -> {history.new_status.value}",
            extra={"complaint_id": history.complaint_id}
        )
        return history

    def delete_status_history(self, history_id: str) -> bool:
        """Remove a history row written by a failed escalation attempt"""
        result = self._history.delete_one({"history_id": history_id})
        return result.deleted_count > 0
