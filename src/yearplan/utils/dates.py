"""Timestamp formatting, user date-time parsing and default period boundaries.

Boundaries are computed from the local calendar of ``now`` and rendered as
canonical UTC timestamps (``YYYY-MM-DDTHH:MM:SS.mmmZ``). The format is fixed
width, so canonical timestamps sort correctly as plain strings.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

from ..errors import DateParseError

NOW_LITERAL = "now"
ISO_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def local_now() -> datetime:
    """Return the current local wall-clock time (naive, system timezone)."""
    return datetime.now()


def to_timestamp(moment: datetime) -> str:
    """Render ``moment`` in canonical form; naive values are taken as local time."""
    utc = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return utc.isoformat(timespec="milliseconds") + "Z"


def now_timestamp(now: Optional[datetime] = None) -> str:
    return to_timestamp(now or local_now())


def resolve_datetime(raw: Any, label: str, *, now: Optional[datetime] = None) -> Optional[str]:
    """Resolve a user supplied date-time option.

    Returns ``None`` when nothing was supplied so the caller can apply its
    scope default. ``now`` (any case) resolves to the current instant. An ISO
    date without a time (``2026-05-01``) is midnight UTC; other values without
    an offset are local time. Anything that cannot be parsed or rendered
    raises :class:`DateParseError`.
    """
    if not raw or not isinstance(raw, str):
        return None
    value = raw.strip()
    if not value:
        return None
    if value.lower() == NOW_LITERAL:
        return now_timestamp(now)
    try:
        parsed = date_parser.parse(value)
        if ISO_DATE_ONLY.match(value):
            parsed = parsed.replace(tzinfo=timezone.utc)
        return to_timestamp(parsed)
    except (ValueError, OverflowError) as error:
        raise DateParseError(label, raw) from error


def _midnight(day: date, now: datetime) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=now.tzinfo)


def start_of_next_day(now: Optional[datetime] = None) -> str:
    current = now or local_now()
    return to_timestamp(_midnight(current.date() + timedelta(days=1), current))


def start_of_next_week(now: Optional[datetime] = None) -> str:
    """Midnight of the next Monday; on a Monday this is seven days ahead."""
    current = now or local_now()
    days_ahead = 7 - current.weekday()
    return to_timestamp(_midnight(current.date() + timedelta(days=days_ahead), current))


def start_of_next_quarter(now: Optional[datetime] = None) -> str:
    current = now or local_now()
    next_quarter = (current.month - 1) // 3 + 1
    if next_quarter == 4:
        boundary = date(current.year + 1, 1, 1)
    else:
        boundary = date(current.year, next_quarter * 3 + 1, 1)
    return to_timestamp(_midnight(boundary, current))


def start_of_next_year(now: Optional[datetime] = None) -> str:
    current = now or local_now()
    return to_timestamp(_midnight(date(current.year + 1, 1, 1), current))
