"""ID Generation Utilities"""
import os
import socket
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique ID with optional prefix

    Args:
        prefix: Optional prefix for the ID (e.g., 'ESC', 'HIST', 'AUD')

    Returns:
        Unique ID string

    Examples:
        >>> generate_id('ESC')
        'ESC-a1b2c3d4e5f6'
        >>> generate_id()
        'a1b2c3d4e5f6'
    """
    unique_part = uuid.uuid4().hex[:12]

    if prefix:
        return f"{prefix}-{unique_part}"
    return unique_part


def generate_rule_id() -> str:
    """Generate escalation rule ID"""
    return generate_id("RULE")


def generate_escalation_id() -> str:
    """Generate complaint escalation ID"""
    return generate_id("ESC")


def generate_history_id() -> str:
    """Generate status history ID"""
    return generate_id("HIST")


def generate_audit_id() -> str:
    """Generate audit log ID"""
    return generate_id("AUD")


def generate_notification_id() -> str:
    """Generate notification ID"""
    return generate_id("NTF")


def generate_metrics_event_id() -> str:
    """Generate pilot metrics event ID"""
    return generate_id("MET")


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request and cycle tracing

    Returns:
        Correlation ID string with timestamp prefix
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"


def generate_server_id() -> str:
    """Unique identifier of this engine process, used as the claim owner"""
    hostname = socket.gethostname()
    pid = os.getpid()
    return f"{hostname}-{pid}-{generate_id()[:8]}"
