"""Escalations API - Manual trigger and per-complaint escalation view"""
from typing import List
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..deps import (
    require_admin_dep, get_correlation_id_dep, get_escalation_engine,
    get_complaint_repo, get_escalation_repo
)
from ...domain.errors import ComplaintNotFoundError
from ...domain.models import CandidateFailure, ComplaintEscalation, EscalationResult
from ...engine.engine import EscalationEngine
from ...repositories.complaint_repo import ComplaintRepository
from ...repositories.escalation_repo import EscalationRepository
from ...utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_admin_dep)])


# =============================================================================
# Response Models
# =============================================================================

class ProcessEscalationsResponse(BaseModel):
    """Result of one on-demand cycle"""
    correlation_id: str
    dry_run: bool
    rules_loaded: int
    candidates: int
    processed: int
    escalated: int
    reminders: int
    results: List[EscalationResult]
    skipped: List[EscalationResult]
    failed: List[CandidateFailure]


class ComplaintEscalationStateResponse(BaseModel):
    """Derived and cached escalation level of a complaint"""
    complaint_id: str
    complaint_number: str
    current_status: str
    current_level: int
    cached_level: int
    in_sync: bool
    escalations: List[ComplaintEscalation]


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/process", response_model=ProcessEscalationsResponse)
def process_escalations(
    correlation_id: str = Depends(get_correlation_id_dep),
    engine: EscalationEngine = Depends(get_escalation_engine)
):
    """
    Run one escalation cycle now and return per-candidate results.

    Safe to call repeatedly: the idempotency window and per-complaint claim
    keep a second call from escalating the same complaint twice.
    """
    logger.info("Manual escalation cycle requested")
    report = engine.run_cycle(correlation_id=correlation_id)
    return ProcessEscalationsResponse(
        correlation_id=report.correlation_id,
        dry_run=report.dry_run,
        rules_loaded=report.rules_loaded,
        candidates=report.candidates,
        processed=len(report.results),
        escalated=report.escalated_count,
        reminders=report.reminder_count,
        results=report.results,
        skipped=report.skipped,
        failed=report.failed
    )


@router.get("/complaints/{complaint_id}", response_model=ComplaintEscalationStateResponse)
def get_complaint_escalations(
    complaint_id: str,
    complaint_repo: ComplaintRepository = Depends(get_complaint_repo),
    escalation_repo: EscalationRepository = Depends(get_escalation_repo)
):
    """
    Escalation state of one complaint.

    ``current_level`` is derived from escalation history; ``cached_level``
    is the denormalized field on the complaint and may lag behind.
    """
    complaint = complaint_repo.get_complaint(complaint_id)
    if not complaint:
        raise ComplaintNotFoundError(f"Complaint {complaint_id} not found")

    current_level = escalation_repo.get_current_level(complaint_id)
    return ComplaintEscalationStateResponse(
        complaint_id=complaint.complaint_id,
        complaint_number=complaint.complaint_number,
        current_status=complaint.current_status.value,
        current_level=current_level,
        cached_level=complaint.current_escalation_level,
        in_sync=current_level == complaint.current_escalation_level,
        escalations=escalation_repo.list_escalations_for_complaint(complaint_id)
    )
