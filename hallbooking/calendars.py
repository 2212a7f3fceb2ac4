"""Month calendar summaries built on day occupancy."""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import List, Sequence

from .errors import InvalidMonth
from .occupancy import Occupant, occupants_on
from .timeutils import iter_dates


@dataclass(frozen=True)
class CalendarDay:
    date: date
    free: bool
    booking_count: int


def month_bounds(year: int, month: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise InvalidMonth("month must be between 1 and 12")
    if not 1 <= year <= 9999:
        raise InvalidMonth("year must be between 1 and 9999")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def calendar_summary(occupants: Sequence[Occupant], year: int, month: int) -> List[CalendarDay]:
    """One entry per day of the month, ascending.

    Counts are taken per booking, so with an all-halls snapshot two halls
    booked on the same day count twice.
    """
    first, last = month_bounds(year, month)
    summary = []
    for day in iter_dates(first, last):
        count = len(occupants_on(occupants, day))
        summary.append(CalendarDay(date=day, free=count == 0, booking_count=count))
    return summary
