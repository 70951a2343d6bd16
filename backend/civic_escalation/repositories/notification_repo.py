"""Notification Repository - Data access for notification outbox

The engine only enqueues; a separate delivery worker owns sending and retries.
"""
from typing import Dict, List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection, to_document, NOTIFICATION_OUTBOX
from ..domain.models import NotificationOutbox
from ..domain.enums import NotificationStatus
from ..utils.logger import get_logger

logger = get_logger(__name__)


class NotificationRepository:
    """Repository for notification outbox operations"""

    def __init__(self, collection: Optional[Collection] = None):
        self._outbox: Collection = collection if collection is not None else get_collection(NOTIFICATION_OUTBOX)

    def create_notification(self, notification: NotificationOutbox) -> NotificationOutbox:
        """Create a notification in outbox"""
        self._outbox.insert_one(to_document(notification, notification.notification_id))
        logger.info(
            f"Created notification: {notification.template_key.value}",
            extra={"complaint_id": notification.complaint_id}
        )
        return notification

    def get_notifications_for_complaint(self, complaint_id: str) -> List[NotificationOutbox]:
        """Get all notifications for a complaint"""
        cursor = self._outbox.find({"complaint_id": complaint_id}).sort("created_at", ASCENDING)

        notifications = []
        for doc in cursor:
            doc.pop("_id", None)
            notifications.append(NotificationOutbox.model_validate(doc))
        return notifications

    def count_by_status(self) -> Dict[str, int]:
        """Count notifications by status"""
        pipeline = [
            {"$group": {"_id": "$status", "count": {"$sum": 1}}}
        ]
        counts = {status.value: 0 for status in NotificationStatus}
        for doc in self._outbox.aggregate(pipeline):
            counts[doc["_id"]] = doc["count"]
        return counts
