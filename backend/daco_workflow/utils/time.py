"""Time Utilities - UTC timestamps and calendar-day arithmetic"""
from datetime import datetime, timezone, timedelta
from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (as returned by pymongo) and normalize aware ones"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string

    Args:
        dt: Datetime object

    Returns:
        ISO formatted string with Z suffix for UTC
    """
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to datetime

    Args:
        iso_string: ISO formatted datetime string

    Returns:
        Datetime object in UTC
    """
    return ensure_utc(date_parser.isoparse(iso_string))


def add_days(dt: datetime, days: int) -> datetime:
    """Add days to datetime"""
    return dt + timedelta(days=days)


def elapsed_calendar_days(since: datetime, now: datetime) -> int:
    """
    Whole calendar days between two instants, compared on their UTC dates.

    An action at 23:59 on the 1st is one day old at 00:01 on the 2nd.
    Month and year boundaries are handled by date subtraction.
    """
    return (ensure_utc(now).date() - ensure_utc(since).date()).days
