"""API module - Routes and dependencies"""
from .deps import require_admin_dep, get_correlation_id_dep

__all__ = ["require_admin_dep", "get_correlation_id_dep"]
