"""API Dependencies - Common dependencies for routes"""
import secrets
from typing import Optional
from fastapi import Header, HTTPException, status

from ..config.settings import settings
from ..engine.engine import EscalationEngine
from ..repositories.complaint_repo import ComplaintRepository
from ..repositories.escalation_repo import EscalationRepository
from ..utils.logger import get_logger, get_correlation_id, set_correlation_id
from ..utils.idgen import generate_correlation_id

logger = get_logger(__name__)


async def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Get or generate correlation ID for request tracing

    Client header first, then the ID the middleware already set,
    otherwise a new one.
    """
    correlation_id = x_correlation_id or get_correlation_id() or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


async def require_admin_dep(
    authorization: Optional[str] = Header(None)
) -> None:
    """
    Dependency that only lets the static admin token through

    Raises:
        HTTPException: 403 if the token is missing, wrong, or not configured
    """
    expected = settings.admin_token
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()

    if not expected or not token or not secrets.compare_digest(token, expected):
        logger.warning("Rejected admin request")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": {"code": "AUTHORIZATION_ERROR", "message": "Admin token required"}}
        )


def get_escalation_engine() -> EscalationEngine:
    """Engine wired to the live database"""
    return EscalationEngine()


def get_complaint_repo() -> ComplaintRepository:
    return ComplaintRepository()


def get_escalation_repo() -> EscalationRepository:
    return EscalationRepository()
