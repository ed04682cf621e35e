"""
Common date/time utility functions for consistent date/time handling across the application

Storage: All timestamps are stored in UTC; batch expiry dates are calendar dates.

Datetimes arriving from outside (query parameters, SQLite reads) may be
naive; as_utc() pins those to UTC before they are compared.
"""

from datetime import date, datetime, timezone


def as_utc(dt: datetime) -> datetime:
    """
    Convert dt to tz-aware UTC.
    If dt is naive, we treat it as UTC.

    Args:
        dt: datetime object (naive or timezone-aware)

    Returns:
        datetime object in UTC timezone
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    """
    Get current UTC datetime.

    Returns:
        Current datetime in UTC timezone
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Current calendar date in UTC; the reference day for batch expiry."""
    return utc_now().date()

