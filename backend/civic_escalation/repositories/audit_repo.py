"""Audit Repository - Data access for the audit log"""
from typing import Optional
from datetime import datetime
from pymongo.collection import Collection
from pymongo import DESCENDING

from .mongo_client import get_collection, to_document, AUDIT_LOG
from ..domain.models import AuditLogEntry
from ..domain.enums import AuditAction
from ..utils.logger import get_logger
from ..utils.time import ensure_utc

logger = get_logger(__name__)


class AuditRepository:
    """Repository for audit log operations (append-only)"""

    def __init__(self, collection: Optional[Collection] = None):
        self._audit_log: Collection = collection if collection is not None else get_collection(AUDIT_LOG)

    def create_entry(self, entry: AuditLogEntry) -> AuditLogEntry:
        """Create an audit entry (append-only)"""
        self._audit_log.insert_one(to_document(entry, entry.audit_id))
        logger.info(
            f"Created audit entry: {entry.action.value}",
            extra={"complaint_id": entry.entity_id, "action": entry.action.value}
        )
        return entry

    def get_last_action_time(
        self,
        complaint_id: str,
        action: AuditAction,
        entity_type: str = "complaint"
    ) -> Optional[datetime]:
        """Time of the latest ``action`` entry for a complaint, if any"""
        doc = self._audit_log.find_one(
            {
                "entity_type": entity_type,
                "entity_id": complaint_id,
                "action": AuditAction(action).value,
            },
            projection={"created_at": 1},
            sort=[("created_at", DESCENDING)]
        )
        if not doc:
            return None
        return ensure_utc(doc["created_at"])
