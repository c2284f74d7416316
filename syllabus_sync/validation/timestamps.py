"""Zone-naive timestamp helpers.

The canonical wire form is ``YYYY-MM-DDTHH:MM:SS.mmm`` with no offset.
Accepted inputs additionally include date-only, second precision, and
values carrying a ``Z`` or ``±HH:MM`` suffix, which is dropped rather
than converted.
"""

from __future__ import annotations

import re
from datetime import datetime

_TIMEZONE_SUFFIX = re.compile(r"(?:Z|[+-]\d{2}:?\d{2})$", re.IGNORECASE)
_ACCEPTED = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:T(?P<time>\d{2}:\d{2}(?::\d{2})?)(?:\.(?P<fraction>\d{1,6}))?)?$"
)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DDTHH:MM:SS.mmm`` ignoring any tzinfo."""
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}"


def strip_timezone(value: str) -> str:
    """Drop a trailing ``Z`` or ``±HH:MM`` suffix."""
    return _TIMEZONE_SUFFIX.sub("", value.strip())


def parse_timestamp(value: str) -> datetime:
    """
    Parse an accepted timestamp string into a zone-naive datetime.

    Args:
        value: Timestamp string.

    Returns:
        Naive datetime in local wall-clock time.

    Raises:
        ValueError: If the string is not an accepted form or not a real date.
    """
    if not isinstance(value, str):
        raise ValueError("timestamp must be a string")

    m = _ACCEPTED.match(strip_timezone(value))
    if not m:
        raise ValueError(f"unsupported timestamp format: {value!r}")

    time_part = m.group("time") or "00:00:00"
    if time_part.count(":") == 1:
        time_part += ":00"
    fraction = (m.group("fraction") or "0").ljust(6, "0")

    # strptime rejects impossible dates such as 2025-02-30
    parsed = datetime.strptime(f"{m.group('date')}T{time_part}", "%Y-%m-%dT%H:%M:%S")
    return parsed.replace(microsecond=int(fraction))


def normalize_timestamp(value: str) -> str:
    """Parse and re-format into the canonical zone-naive form."""
    return format_timestamp(parse_timestamp(value))


def is_valid_timestamp(value: object) -> bool:
    """True if value is an accepted, calendar-valid timestamp string."""
    if not isinstance(value, str):
        return False
    try:
        parse_timestamp(value)
    except ValueError:
        return False
    return True
