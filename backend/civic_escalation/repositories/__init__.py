"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection, create_indexes, health_check
from .rule_repo import RuleRepository
from .complaint_repo import ComplaintRepository
from .escalation_repo import EscalationRepository
from .officer_repo import OfficerRepository
from .audit_repo import AuditRepository
from .metrics_repo import MetricsRepository
from .notification_repo import NotificationRepository

__all__ = [
    "get_database",
    "get_collection",
    "create_indexes",
    "health_check",
    "RuleRepository",
    "ComplaintRepository",
    "EscalationRepository",
    "OfficerRepository",
    "AuditRepository",
    "MetricsRepository",
    "NotificationRepository",
]
