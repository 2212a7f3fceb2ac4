"""Conflict checks for time-wise and day-wise requests."""
from __future__ import annotations

from typing import Any, Iterable, Sequence

from .errors import FullDayBooked, RangeBlocked, SlotTaken
from .occupancy import Occupant, effective_window, occupants_on
from .shapes import DayWise, Shape, TimeWise
from .timeutils import format_date, overlaps


def check_conflicts(shape: Shape, occupants: Sequence[Occupant], exclude_id: Any = None) -> None:
    """Raise a :class:`~hallbooking.errors.BookingConflict` on the first clash.

    ``occupants`` is a snapshot of the hall's bookings; ``exclude_id`` removes
    the booking being edited from consideration.
    """
    if isinstance(shape, TimeWise):
        _check_time_wise(shape, occupants, exclude_id)
    elif isinstance(shape, DayWise):
        _check_day_wise(shape, occupants, exclude_id)


def _check_time_wise(shape: TimeWise, occupants: Iterable[Occupant], exclude_id: Any) -> None:
    day = shape.day
    for occupant in occupants_on(occupants, day, exclude_id):
        window = effective_window(occupant, day)
        if window is None:
            raise FullDayBooked(
                f"This day ({format_date(day)}) is already booked in full. Please choose another date.",
                day,
                occupant.id,
            )
        if overlaps(shape.window, window):
            raise SlotTaken(
                f"Time slot {shape.window} overlaps another booking ({window}) on {format_date(day)}",
                day,
                occupant.id,
            )


def _check_day_wise(shape: DayWise, occupants: Sequence[Occupant], exclude_id: Any) -> None:
    for day in shape.dates():
        on_day = occupants_on(occupants, day, exclude_id)
        if not on_day:
            continue
        requested = shape.window_on(day)
        if requested is None:
            raise RangeBlocked(
                f"Some days in this range are already booked ({format_date(day)}).",
                day,
                on_day[0].id,
            )
        for occupant in on_day:
            window = effective_window(occupant, day)
            if window is None:
                raise RangeBlocked(
                    f"{format_date(day)} is already booked in full.",
                    day,
                    occupant.id,
                )
            if overlaps(requested, window):
                raise SlotTaken(
                    f"Time slot {requested} overlaps another booking ({window}) on {format_date(day)}",
                    day,
                    occupant.id,
                )
