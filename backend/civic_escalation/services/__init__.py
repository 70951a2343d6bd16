"""Service modules - Best-effort side effects of escalations"""
from .notification_service import EscalationNotifier
from .metrics_service import PilotMetricsService

__all__ = [
    "EscalationNotifier",
    "PilotMetricsService",
]
