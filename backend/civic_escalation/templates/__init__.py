"""
Email Templates Package

Escalation email templates for the notification outbox.
"""
from .escalation_templates import (
    get_email_template,
    get_base_template,
    get_info_card,
    level_label,
    TEMPLATE_REGISTRY
)

__all__ = [
    "get_email_template",
    "get_base_template",
    "get_info_card",
    "level_label",
    "TEMPLATE_REGISTRY"
]
