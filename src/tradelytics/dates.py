"""Local calendar date helpers.

Broker exports carry dates in a handful of shapes. Everything here treats a
date as a local calendar date: no timezone conversion, time of day ignored.
Unparseable input yields ``None`` rather than today's date.
"""
import re
from datetime import date, datetime, time
from typing import Any, Optional

_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
_SLASH_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")
_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])?")

# Formats tried after the numeric patterns, e.g. "Tue, Aug 12, 2025"
_TEXT_FORMATS = (
    "%a, %b %d, %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%b %d, %Y %H:%M",
)

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_local_date(value: Any) -> Optional[date]:
    """Parse ``value`` into a calendar date.

    Accepts ``date``/``datetime`` objects, ``YYYY-MM-DD`` (optionally followed
    by a time), ``MM/DD/YYYY`` (read as ``DD/MM/YYYY`` when the first part is
    greater than 12) and a few textual forms.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    s = str(value).strip()
    if not s:
        return None

    m = _ISO_RE.match(s)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _SLASH_RE.match(s)
    if m:
        first, second, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
        if first > 12:
            return _safe_date(year, second, first)
        return _safe_date(year, first, second)

    for fmt in _TEXT_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def parse_local_time(value: Any) -> Optional[time]:
    """Extract a wall-clock time from ``value`` (``19:48:37``, ``08/07/2025 7:18 PM``)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value

    m = _TIME_RE.search(str(value))
    if not m:
        return None
    hour, minute = int(m.group(1)), int(m.group(2))
    second = int(m.group(3) or 0)
    meridiem = (m.group(4) or "").lower()
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0
    try:
        return time(hour, minute, second)
    except ValueError:
        return None


def short_label(d: date) -> str:
    """Chart axis label, ``M/D`` without zero padding."""
    return f"{d.month}/{d.day}"


def days_between(start: date, end: date) -> int:
    """Whole calendar days from ``start`` to ``end``."""
    return (end - start).days


def weekday_name(d: date) -> str:
    return WEEKDAY_NAMES[d.weekday()]
