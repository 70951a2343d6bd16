"""Pilot Metrics Service - Best-effort metrics events"""
from typing import Any, Dict, Optional

from ..domain.models import PilotMetricsEvent
from ..domain.enums import MetricsEventType
from ..repositories.metrics_repo import MetricsRepository
from ..utils.idgen import generate_metrics_event_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class PilotMetricsService:
    """Emit pilot metrics; never raises"""

    def __init__(self, repo: Optional[MetricsRepository] = None):
        self.repo = repo or MetricsRepository()

    def emit(
        self,
        event_type: MetricsEventType,
        complaint_id: Optional[str] = None,
        user_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[PilotMetricsEvent]:
        event = PilotMetricsEvent(
            event_id=generate_metrics_event_id(),
            event_type=event_type,
            complaint_id=complaint_id,
            user_id=user_id,
            metadata=metadata or {},
            created_at=utc_now()
        )
        try:
            return self.repo.create_event(event)
        except Exception as e:
            logger.warning(
                f"Failed to emit metrics event {event_type.value}: {e}",
                extra={"complaint_id": complaint_id, "error_type": type(e).__name__}
            )
            return None

    def emit_escalation_triggered(
        self,
        complaint_id: str,
        user_id: Optional[int],
        escalation_level: int,
        from_department_id: Optional[int],
        to_department_id: int,
        reason: str
    ) -> Optional[PilotMetricsEvent]:
        """Record an escalation; ``escalation_level`` is the pre-escalation level"""
        return self.emit(
            MetricsEventType.ESCALATION_TRIGGERED,
            complaint_id=complaint_id,
            user_id=user_id,
            metadata={
                "escalation_level": escalation_level,
                "target_level": escalation_level + 1,
                "from_department": from_department_id,
                "to_department": to_department_id,
                "reason": reason,
            }
        )
