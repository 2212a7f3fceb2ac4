"""Day occupancy: which existing bookings touch a given date."""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, List, NamedTuple, Optional, Union

from .errors import BookingError
from .shapes import DayWise, TimeWise, field_value, validate_shape
from .timeutils import TimeRange

logger = logging.getLogger(__name__)


class Occupant(NamedTuple):
    booking: Any
    shape: Union[TimeWise, DayWise]

    @property
    def id(self) -> Any:
        return field_value(self.booking, "id")


def normalize_hall(hall: Optional[str]) -> Optional[str]:
    if hall is None:
        return None
    normalized = hall.strip().lower()
    return normalized or None


def same_hall(record: Any, hall: Optional[str]) -> bool:
    """Case-insensitive hall match; a None filter matches every hall."""
    wanted = normalize_hall(hall)
    if wanted is None:
        return True
    return normalize_hall(field_value(record, "hall_name")) == wanted


def snapshot(bookings: Iterable[Any], hall: Optional[str] = None) -> List[Occupant]:
    """Parse ``bookings`` once into occupants of ``hall`` (every hall when None).

    Records that fail to parse are logged and left out: a corrupt row must not
    make an otherwise free hall unbookable. Slot-label bookings occupy no date
    and are left out as well.
    """
    occupants: List[Occupant] = []
    for booking in bookings:
        if not same_hall(booking, hall):
            continue
        try:
            shape = validate_shape(booking)
        except BookingError as exc:
            logger.warning(
                "Skipping unreadable booking id=%s hall=%s: %s",
                field_value(booking, "id"),
                field_value(booking, "hall_name"),
                exc.message,
            )
            continue
        if isinstance(shape, (TimeWise, DayWise)):
            occupants.append(Occupant(booking, shape))
    return occupants


def occupants_on(occupants: Iterable[Occupant], day: date, exclude_id: Any = None) -> List[Occupant]:
    """Return the occupants whose coverage includes ``day``, deduplicated by id."""
    seen = set()
    found: List[Occupant] = []
    for occupant in occupants:
        if not occupant.shape.covers(day):
            continue
        booking_id = occupant.id
        if exclude_id is not None and booking_id is not None and str(booking_id) == str(exclude_id):
            continue
        key = booking_id if booking_id is not None else id(occupant.booking)
        if key in seen:
            continue
        seen.add(key)
        found.append(occupant)
    return found


def effective_window(occupant: Occupant, day: date) -> Optional[TimeRange]:
    """The occupant's window on ``day``; None means it holds the whole day."""
    return occupant.shape.window_on(day)
