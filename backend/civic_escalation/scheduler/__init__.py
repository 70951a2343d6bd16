"""Scheduler module - Periodic escalation cycles"""
from .escalation_scheduler import EscalationScheduler, get_scheduler, start_scheduler, stop_scheduler

__all__ = [
    "EscalationScheduler",
    "get_scheduler",
    "start_scheduler",
    "stop_scheduler",
]
