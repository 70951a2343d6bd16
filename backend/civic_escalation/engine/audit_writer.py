"""Audit Writer - Append-only audit entries for escalations and reminders"""
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..domain.models import AuditLogEntry
from ..domain.enums import AuditAction, ActorType
from ..repositories.audit_repo import AuditRepository
from ..utils.idgen import generate_audit_id
from ..utils.time import utc_now
from ..utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


class AuditWriter:
    """
    Write audit entries (append-only)

    Every escalation and every reminder produces an entry against the
    complaint, acted by the system.
    """

    def __init__(self, repo: Optional[AuditRepository] = None, clock: Callable[[], datetime] = utc_now):
        self.repo = repo or AuditRepository()
        self.clock = clock

    def write_entry(
        self,
        complaint_id: str,
        action: AuditAction,
        metadata: Optional[Dict[str, Any]] = None
    ) -> AuditLogEntry:
        """Write a single audit entry"""
        entry = AuditLogEntry(
            audit_id=generate_audit_id(),
            entity_type="complaint",
            entity_id=complaint_id,
            action=action,
            action_by_type=ActorType.SYSTEM,
            metadata=metadata or {},
            correlation_id=get_correlation_id(),
            created_at=self.clock()
        )
        return self.repo.create_entry(entry)

    def write_escalation(
        self,
        complaint_id: str,
        escalation_id: str,
        escalation_level: int,
        from_department_id: Optional[int],
        to_department_id: int,
        reason: str,
        dry_run: bool = False,
        dry_run_sla_override_minutes: int = 0
    ) -> AuditLogEntry:
        """Write escalation entry; ``escalation_level`` is the pre-escalation level"""
        metadata: Dict[str, Any] = {
            "escalation_id": escalation_id,
            "escalation_level": escalation_level,
            "from_department": from_department_id,
            "to_department": to_department_id,
            "reason": reason,
        }
        if dry_run:
            metadata["dry_run"] = True
            metadata["dry_run_sla_override_minutes"] = dry_run_sla_override_minutes
        return self.write_entry(complaint_id, AuditAction.ESCALATION, metadata)

    def write_reminder(self, complaint_id: str, rule_id: str, reason: str) -> AuditLogEntry:
        """Write reminder entry"""
        return self.write_entry(
            complaint_id,
            AuditAction.REMINDER,
            {"reminder_reason": reason, "rule_id": rule_id}
        )
