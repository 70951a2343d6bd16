"""Notification Service - Enqueue escalation emails in the outbox

Only enqueues. Delivery and retry belong to the outbox sender, which is not
part of this service. Failures are logged and never reach the caller.
"""
from typing import Any, Dict, List, Optional

from ..domain.models import NotificationOutbox, Officer
from ..domain.enums import NotificationStatus, NotificationType, NotificationTemplateKey
from ..repositories.notification_repo import NotificationRepository
from ..repositories.officer_repo import OfficerRepository
from ..templates import get_email_template
from ..config.settings import settings
from ..utils.idgen import generate_notification_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class EscalationNotifier:
    """Notify the receiving authority about an escalation"""

    def __init__(
        self,
        repo: Optional[NotificationRepository] = None,
        officer_repo: Optional[OfficerRepository] = None,
        shadow_mode: Optional[bool] = None,
        pilot_inbox_email: Optional[str] = None,
        app_url: Optional[str] = None
    ):
        self.repo = repo or NotificationRepository()
        self.officer_repo = officer_repo or OfficerRepository()
        self.shadow_mode = settings.email_shadow_mode if shadow_mode is None else shadow_mode
        self.pilot_inbox_email = pilot_inbox_email or settings.pilot_inbox_email
        self.app_url = settings.frontend_url if app_url is None else app_url

    # =========================================================================
    # Outbox Creation
    # =========================================================================

    def enqueue_notification(
        self,
        template_key: NotificationTemplateKey,
        recipients: List[str],
        payload: Dict[str, Any],
        complaint_id: Optional[str] = None
    ) -> NotificationOutbox:
        """Render and store a notification for sending"""
        rendered = get_email_template(template_key, payload, self.app_url)
        notification = NotificationOutbox(
            notification_id=generate_notification_id(),
            complaint_id=complaint_id,
            notification_type=NotificationType.EMAIL,
            template_key=template_key,
            recipients=recipients,
            subject=rendered["subject"],
            body=rendered["body"],
            payload=payload,
            status=NotificationStatus.PENDING,
            created_at=utc_now()
        )
        return self.repo.create_notification(notification)

    def notify_escalation(
        self,
        complaint_id: str,
        complaint_number: str,
        target_level: int,
        to_department_id: int,
        to_officer_id: Optional[int],
        reason: str
    ) -> Optional[NotificationOutbox]:
        """
        Enqueue the escalation email (best-effort)

        Returns:
            The outbox row, or None if enqueueing failed
        """
        try:
            officer = self.officer_repo.get_officer(to_officer_id) if to_officer_id is not None else None
            recipients = self._recipients_for(officer)
            payload = {
                "complaint_id": complaint_id,
                "complaint_number": complaint_number,
                "target_level": target_level,
                "to_department_id": to_department_id,
                "to_officer_id": to_officer_id,
                "reason": reason,
                "shadow_mode": self.shadow_mode,
            }
            return self.enqueue_notification(
                NotificationTemplateKey.COMPLAINT_ESCALATED,
                recipients,
                payload,
                complaint_id=complaint_id
            )
        except Exception as e:
            logger.warning(
                f"Failed to enqueue escalation notification: {e}",
                extra={"complaint_id": complaint_id, "error_type": type(e).__name__}
            )
            return None

    def _recipients_for(self, officer: Optional[Officer]) -> List[str]:
        # Shadow mode, or nobody to address: everything goes to the pilot inbox
        if self.shadow_mode or officer is None or not officer.email:
            return [self.pilot_inbox_email]
        return [officer.email]
