"""Utility modules"""
from .logger import get_logger, setup_logging, set_correlation_id, get_correlation_id
from .idgen import generate_id, generate_correlation_id
from .time import utc_now, ensure_utc, parse_iso, minutes_between, hours_between

__all__ = [
    "get_logger",
    "setup_logging",
    "set_correlation_id",
    "get_correlation_id",
    "generate_id",
    "generate_correlation_id",
    "utc_now",
    "ensure_utc",
    "hours_between",
    "parse_iso",
    "minutes_between",
]
