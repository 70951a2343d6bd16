"""Time Utilities - UTC timestamps and elapsed-time arithmetic

Every timestamp the escalation engine compares is normalised to UTC first.
Naive datetimes coming back from storage are treated as UTC, never as local
time.
"""
from datetime import datetime, timezone
from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalise a datetime to aware UTC

    Naive values are assumed to already hold UTC wall-clock time.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to datetime

    Args:
        iso_string: ISO formatted datetime string

    Returns:
        Datetime object in UTC
    """
    return ensure_utc(date_parser.isoparse(iso_string))


def minutes_between(start: datetime, end: datetime) -> float:
    """
    Minutes elapsed from start to end, never negative

    A start in the future (clock skew between writers) counts as zero
    elapsed time rather than a negative duration.
    """
    delta = ensure_utc(end) - ensure_utc(start)
    return max(0.0, delta.total_seconds() / 60)


def hours_between(start: datetime, end: datetime) -> float:
    """Hours elapsed from start to end, never negative"""
    return minutes_between(start, end) / 60
