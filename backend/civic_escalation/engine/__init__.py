"""Escalation Engine - Rule evaluation and escalation execution"""
from .engine import EscalationEngine
from .executor import EscalationExecutor
from .candidate_selector import CandidateSelector
from .condition_evaluator import ConditionEvaluator
from .authority_resolver import AuthorityResolver
from .audit_writer import AuditWriter

__all__ = [
    "EscalationEngine",
    "EscalationExecutor",
    "CandidateSelector",
    "ConditionEvaluator",
    "AuthorityResolver",
    "AuditWriter",
]
