"""Domain Models - Pydantic schemas for escalation entities"""
import json
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator

from .enums import (
    ComplaintStatus, Priority, ActorType, StatusHistoryActorType, AuditAction,
    EscalationOutcome, NotificationStatus, NotificationType, NotificationTemplateKey,
    MetricsEventType
)
from ..utils.time import ensure_utc, minutes_between, parse_iso


def _parse_timestamp(value: Any) -> Any:
    # Rows imported from the legacy store keep timestamps as ISO text
    if isinstance(value, str):
        return parse_iso(value)
    return value


# Datetimes are always carried as aware UTC, whatever the storage returned
UtcDatetime = Annotated[datetime, BeforeValidator(_parse_timestamp), AfterValidator(ensure_utc)]


# ============================================================================
# Escalation Rules & Conditions
# ============================================================================

CONDITIONS_SCHEMA_VERSION = 2

# Highest level a rule may be written for (0 = L1, 1 = L2, 2 = L3)
MAX_RULE_LEVEL = 2

# Deprecated alias of ``sla_hours`` found in older rule documents
LEGACY_SLA_FIELD = "hours_since_status_change"


class TimeBasedCondition(BaseModel):
    """Time thresholds, in hours; 0 means the check is not configured"""
    model_config = ConfigDict(extra="ignore", frozen=True)

    hours_since_last_update: int = Field(default=0, ge=0)
    sla_hours: int = Field(default=0, ge=0, description="Hours since the last status change")
    hours_since_creation: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _migrate_legacy_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = {key: (0 if value is None else value) for key, value in data.items()}
        legacy_sla = data.pop(LEGACY_SLA_FIELD, 0)
        if not data.get("sla_hours") and legacy_sla:
            data["sla_hours"] = legacy_sla
        return data


class EscalationConditions(BaseModel):
    """
    Parsed condition block of an escalation rule.

    Raw blocks may arrive as JSON text and may use the legacy
    ``hours_since_status_change`` name; both are normalised here, once,
    when the rule is loaded.
    """
    model_config = ConfigDict(extra="ignore", frozen=True)

    schema_version: int = CONDITIONS_SCHEMA_VERSION
    statuses: List[str] = Field(default_factory=list)
    priorities: List[str] = Field(default_factory=list)
    time_based: Optional[TimeBasedCondition] = None
    is_reminder: bool = False
    reminder_interval_hours: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _decode_and_tag(cls, data: Any) -> Any:
        if isinstance(data, (str, bytes)):
            data = json.loads(data)
        if isinstance(data, dict):
            data = dict(data)
            for key in ("statuses", "priorities"):
                if data.get(key) is None:
                    data.pop(key, None)
            version = data.get("schema_version") or 1
            if not isinstance(version, int) or version > CONDITIONS_SCHEMA_VERSION:
                raise ValueError(f"Unsupported conditions schema_version: {version!r}")
            # Older blocks are upgraded in place; the tag records the shape now held
            data["schema_version"] = CONDITIONS_SCHEMA_VERSION
        return data


class EscalationRule(BaseModel):
    """
    Escalation policy entry.

    ``escalation_level`` is the level a complaint must currently be at for
    the rule to apply (0 = L1, 1 = L2); firing moves it one level up.
    Unset ``from_*`` filters match any department/location. Unset
    ``to_department_id`` escalates within the complaint's own department.
    """
    model_config = ConfigDict(extra="ignore", frozen=True)

    rule_id: str
    from_department_id: Optional[int] = None
    from_location_id: Optional[int] = None
    to_department_id: Optional[int] = None
    to_location_id: Optional[int] = None
    escalation_level: int = Field(..., ge=0, le=MAX_RULE_LEVEL)
    conditions: Optional[EscalationConditions] = None
    is_active: bool = True
    created_at: UtcDatetime
    updated_at: Optional[UtcDatetime] = None

    @field_validator("conditions", mode="before")
    @classmethod
    def _empty_block_is_none(cls, value: Any) -> Any:
        if value is None or value == "" or value == b"":
            return None
        return value


# ============================================================================
# Complaints
# ============================================================================

class Complaint(BaseModel):
    """Complaint fields the escalation engine reads and writes"""
    model_config = ConfigDict(extra="ignore")

    complaint_id: str
    complaint_number: str
    user_id: Optional[int] = None
    title: Optional[str] = None
    category: Optional[str] = None
    location_id: int
    pincode: Optional[str] = None
    assigned_department_id: Optional[int] = None
    assigned_officer_id: Optional[int] = None
    current_status: ComplaintStatus
    priority: Priority = Priority.MEDIUM
    current_escalation_level: int = Field(default=0, ge=0)
    created_at: UtcDatetime
    updated_at: Optional[UtcDatetime] = None


class EscalationCandidate(BaseModel):
    """Read-only projection of a non-terminal complaint for one cycle"""
    model_config = ConfigDict(extra="ignore", frozen=True)

    complaint_id: str
    complaint_number: str
    current_status: ComplaintStatus
    priority: Priority = Priority.MEDIUM
    assigned_department_id: Optional[int] = None
    assigned_officer_id: Optional[int] = None
    location_id: int
    pincode: Optional[str] = None
    user_id: Optional[int] = None
    created_at: UtcDatetime
    updated_at: Optional[UtcDatetime] = None
    last_status_change_at: UtcDatetime = Field(
        ..., description="Latest status history timestamp, else created_at"
    )

    def minutes_since_status_change(self, now: datetime) -> float:
        return minutes_between(self.last_status_change_at, now)


class ComplaintStatusHistory(BaseModel):
    """Status change record (immutable)"""
    model_config = ConfigDict(extra="ignore")

    history_id: str
    complaint_id: str
    old_status: Optional[ComplaintStatus] = None
    new_status: ComplaintStatus
    changed_by_type: ActorType
    actor_type: StatusHistoryActorType
    actor_id: Optional[int] = None  # None for system
    assigned_department_id: Optional[int] = None
    assigned_officer_id: Optional[int] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: UtcDatetime


class ComplaintEscalation(BaseModel):
    """One escalation event (append-only)"""
    model_config = ConfigDict(extra="ignore")

    escalation_id: str
    complaint_id: str
    from_department_id: Optional[int] = None
    from_officer_id: Optional[int] = None
    to_department_id: int
    to_officer_id: Optional[int] = None
    escalation_level: int = Field(..., ge=0, description="Level before this escalation")
    reason: Optional[str] = None
    escalated_by_type: ActorType = ActorType.SYSTEM
    status_history_id: Optional[str] = None
    created_at: UtcDatetime


# ============================================================================
# Authority Directory
# ============================================================================

class Officer(BaseModel):
    """Officer in the authority directory"""
    model_config = ConfigDict(extra="ignore")

    officer_id: int
    employee_id: str = Field(..., description="Opaque code encoding seniority, e.g. PHED-L2-001")
    full_name: Optional[str] = None
    designation: Optional[str] = None
    email: Optional[str] = None
    department_id: int
    location_id: int
    is_active: bool = True


# ============================================================================
# Audit, Metrics, Notifications
# ============================================================================

class AuditLogEntry(BaseModel):
    """Audit trail entry (append-only)"""
    model_config = ConfigDict(extra="ignore")

    audit_id: str
    entity_type: str = "complaint"
    entity_id: str
    action: AuditAction
    action_by_type: ActorType = ActorType.SYSTEM
    metadata: Dict[str, Any] = Field(default_factory=dict)
    correlation_id: Optional[str] = None
    created_at: UtcDatetime


class PilotMetricsEvent(BaseModel):
    """Pilot metrics event"""
    model_config = ConfigDict(extra="ignore")

    event_id: str
    event_type: MetricsEventType
    complaint_id: Optional[str] = None
    user_id: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: UtcDatetime


class NotificationOutbox(BaseModel):
    """Notification in outbox"""
    model_config = ConfigDict(extra="ignore")

    notification_id: str
    complaint_id: Optional[str] = None
    notification_type: NotificationType = Field(default=NotificationType.EMAIL)
    template_key: NotificationTemplateKey
    recipients: List[str]
    subject: str
    body: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    status: NotificationStatus = Field(default=NotificationStatus.PENDING)
    created_at: UtcDatetime


# ============================================================================
# Engine Results
# ============================================================================

class EscalationResult(BaseModel):
    """Outcome of processing one candidate in one cycle"""
    model_config = ConfigDict(extra="forbid")

    complaint_id: str
    complaint_number: Optional[str] = None
    outcome: EscalationOutcome
    escalated: bool = False
    reminder_sent: bool = False
    escalation_id: Optional[str] = None
    rule_id: Optional[str] = None
    previous_level: Optional[int] = None
    new_level: Optional[int] = None
    new_status: Optional[ComplaintStatus] = None
    to_department_id: Optional[int] = None
    to_officer_id: Optional[int] = None
    reason: str
    processed_at: UtcDatetime


class CandidateFailure(BaseModel):
    """A candidate whose processing raised"""
    complaint_id: str
    complaint_number: Optional[str] = None
    error_type: str
    error: str


class CycleReport(BaseModel):
    """Summary of one engine cycle"""
    correlation_id: str
    started_at: UtcDatetime
    finished_at: Optional[UtcDatetime] = None
    dry_run: bool = False
    rules_loaded: int = 0
    candidates: int = 0
    results: List[EscalationResult] = Field(default_factory=list)
    skipped: List[EscalationResult] = Field(default_factory=list)
    failed: List[CandidateFailure] = Field(default_factory=list)

    @property
    def escalated_count(self) -> int:
        return sum(1 for result in self.results if result.escalated)

    @property
    def reminder_count(self) -> int:
        return sum(1 for result in self.results if result.reminder_sent)
