"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from paintmix.utils.datetime_utils import utc_now, parse_iso_datetime

    # For SQLAlchemy Column defaults
    created_at = Column(DateTime, default=utc_now)

    # Production dates from import files
    produced = parse_iso_datetime("2024-03-01")
"""

import re
from datetime import date, datetime, time, timezone
from typing import Optional

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime.

    SQLite drops tzinfo on the way back, so naive values are taken to be UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso_datetime(value) -> Optional[datetime]:
    """Parse a date or datetime value into an aware UTC datetime.

    Accepts datetime/date objects (spreadsheet cells), ``YYYY-MM-DD`` strings
    (read as midnight UTC) and full ISO-8601 datetimes. A trailing ``Z`` is
    accepted.

    Args:
        value: Value to parse

    Returns:
        Aware UTC datetime, or None if the value cannot be parsed
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if _DATE_ONLY.match(text):
        text = f"{text}T00:00:00+00:00"
    elif text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return as_utc(parsed)


def to_iso_instant(value: Optional[datetime]) -> Optional[str]:
    """Normalize a datetime to its UTC ISO string for equality checks."""
    if value is None:
        return None
    return as_utc(value).isoformat()
