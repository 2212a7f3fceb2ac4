"""Clock-time and calendar-date arithmetic used by the booking engine."""
from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Iterator, NamedTuple, Optional

from .errors import InvalidDateFormat, MalformedTime

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_YYYY_MM_DD = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DATE_FORMAT = "%Y-%m-%d"


class TimeRange(NamedTuple):
    """Half-open ``[start, end)`` window in minutes since midnight."""

    start: int
    end: int

    @classmethod
    def parse(cls, start: Optional[str], end: Optional[str]) -> "TimeRange":
        return cls(to_minutes(start), to_minutes(end))

    def __str__(self) -> str:
        return f"{format_minutes(self.start)}-{format_minutes(self.end)}"


def to_minutes(hhmm: Optional[str]) -> int:
    if not isinstance(hhmm, str):
        raise MalformedTime(f"Time must be in HH:mm format, got {hhmm!r}")
    match = _HHMM.match(hhmm.strip())
    if not match:
        raise MalformedTime(f"Time must be in HH:mm format, got {hhmm!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_ordered(start: Optional[str], end: Optional[str]) -> bool:
    return to_minutes(end) > to_minutes(start)


def overlaps(first: Optional[TimeRange], second: Optional[TimeRange]) -> bool:
    """Return True when two windows on the same day intersect.

    ``None`` stands for a window with unknown times, which occupies the whole
    day and therefore overlaps anything. Touching endpoints do not overlap.
    """
    if first is None or second is None:
        return True
    return first.start < second.end and second.start < first.end


def parse_date(value: Optional[str]) -> date:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _YYYY_MM_DD.match(value.strip()):
        raise InvalidDateFormat(f"Dates must be in YYYY-MM-DD format, got {value!r}")
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidDateFormat(f"{value!r} is not a valid calendar date") from exc


def format_date(value: date) -> str:
    return value.isoformat()


def iter_dates(first: date, last: date) -> Iterator[date]:
    """Yield every date from ``first`` to ``last`` inclusive."""
    current = first
    while current <= last:
        yield current
        current += timedelta(days=1)
