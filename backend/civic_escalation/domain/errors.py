"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class ComplaintNotFoundError(NotFoundError):
    """Complaint not found"""
    error_code = "COMPLAINT_NOT_FOUND"


class RuleNotFoundError(NotFoundError):
    """Escalation rule not found"""
    error_code = "RULE_NOT_FOUND"


# Engine Errors
class EngineError(DomainError):
    """Escalation engine error"""
    error_code = "ENGINE_ERROR"
    http_status = 500


class RuleLoadError(EngineError):
    """Escalation rules could not be loaded; the cycle is aborted"""
    error_code = "RULE_LOAD_ERROR"
    http_status = 503


class CandidateLoadError(EngineError):
    """Escalation candidates could not be loaded; the cycle is aborted"""
    error_code = "CANDIDATE_LOAD_ERROR"
    http_status = 503


class ConditionParseError(EngineError):
    """A rule's condition block is malformed"""
    error_code = "CONDITION_PARSE_ERROR"
    http_status = 422


class EscalationWriteError(EngineError):
    """A write during escalation execution failed"""
    error_code = "ESCALATION_WRITE_ERROR"
