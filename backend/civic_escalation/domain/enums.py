"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class ComplaintStatus(str, Enum):
    """Complaint lifecycle status"""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    VERIFIED = "verified"
    UNDER_REVIEW = "under_review"
    IN_PROGRESS = "in_progress"
    ESCALATED = "escalated"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    CLOSED = "closed"


# Statuses a complaint can never leave; never escalation candidates
TERMINAL_STATUSES = (
    ComplaintStatus.RESOLVED,
    ComplaintStatus.CLOSED,
    ComplaintStatus.REJECTED,
)

# Statuses the engine selects candidates from
QUALIFYING_STATUSES = (
    ComplaintStatus.VERIFIED,
    ComplaintStatus.UNDER_REVIEW,
    ComplaintStatus.IN_PROGRESS,
)


class Priority(str, Enum):
    """Complaint priority"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ActorType(str, Enum):
    """Who performed an action"""
    USER = "user"
    OFFICER = "officer"
    SYSTEM = "system"
    ADMIN = "admin"


class StatusHistoryActorType(str, Enum):
    """Audit actor type stored on status history rows"""
    SYSTEM = "system"
    AUTHORITY = "authority"
    USER = "user"


class AuditAction(str, Enum):
    """Audit log actions written by the escalation engine"""
    ESCALATION = "escalation"
    REMINDER = "reminder"


class EscalationOutcome(str, Enum):
    """Named outcome of one escalation attempt for one candidate"""
    ESCALATED = "ESCALATED"
    REMINDER_SENT = "REMINDER_SENT"
    MAX_LEVEL_REACHED = "MAX_LEVEL_REACHED"
    NO_MATCHING_RULE = "NO_MATCHING_RULE"
    CONDITIONS_NOT_MET = "CONDITIONS_NOT_MET"
    NO_RULE_FIRED = "NO_RULE_FIRED"  # Only reminder rules matched and none was due
    ALREADY_ESCALATED = "ALREADY_ESCALATED"
    NO_ASSIGNED_DEPARTMENT = "NO_ASSIGNED_DEPARTMENT"
    CLAIM_CONFLICT = "CLAIM_CONFLICT"


class NotificationStatus(str, Enum):
    """Notification outbox status"""
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class NotificationType(str, Enum):
    """Types of notifications"""
    EMAIL = "EMAIL"


class NotificationTemplateKey(str, Enum):
    """Notification template identifiers"""
    COMPLAINT_ESCALATED = "COMPLAINT_ESCALATED"


class MetricsEventType(str, Enum):
    """Pilot metrics event types"""
    ESCALATION_TRIGGERED = "escalation_triggered"
