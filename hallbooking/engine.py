"""Booking availability engine.

:class:`BookingEngine` is a pure decision layer over a read-only
:class:`BookingSource`. It does no locking and no writes; callers serialise
check-then-persist per hall and persist accepted bookings themselves.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, List, Optional, Protocol

from .calendars import CalendarDay, calendar_summary
from .conflicts import check_conflicts
from .errors import HallRequired, PastDate
from .occupancy import Occupant, normalize_hall, occupants_on, same_hall, snapshot
from .shapes import Shape, field_value, validate_shape
from .timeutils import format_date, parse_date

logger = logging.getLogger(__name__)

DEFAULT_MAX_BOOKING_DAYS = 7


class BookingSource(Protocol):
    def bookings(self, hall: Optional[str] = None) -> Iterable[Any]:
        """Current bookings of ``hall`` (case-insensitive), or of every hall when None."""


class InMemoryBookingSource:
    """BookingSource over a plain list of records (ORM rows, mappings, schemas)."""

    def __init__(self, records: Optional[Iterable[Any]] = None) -> None:
        self.records: List[Any] = list(records or [])

    def add(self, record: Any) -> Any:
        self.records.append(record)
        return record

    def remove(self, booking_id: Any) -> None:
        self.records = [r for r in self.records if str(field_value(r, "id")) != str(booking_id)]

    def bookings(self, hall: Optional[str] = None) -> List[Any]:
        return [record for record in self.records if same_hall(record, hall)]


class BookingEngine:
    def __init__(self, source: BookingSource, max_booking_days: Optional[int] = DEFAULT_MAX_BOOKING_DAYS) -> None:
        """``max_booking_days`` of None reads day-wise ranges without a length cap."""
        self.source = source
        self.max_booking_days = max_booking_days

    def validate_and_check(self, request: Any, exclude_id: Any = None, today: Optional[date] = None) -> Shape:
        """Validate ``request`` and check it against the hall's bookings.

        Returns the request's shape when it is admissible; raises a
        :class:`~hallbooking.errors.BookingError` otherwise. ``exclude_id`` is
        the id of the booking being edited. When ``today`` is given, requests
        starting before it are rejected.
        """
        shape = validate_shape(request, self.max_booking_days)

        hall = normalize_hall(field_value(request, "hall_name"))
        if hall is None:
            raise HallRequired("Hall name is required for booking.")

        first = next(iter(shape.dates()), None)
        if today is not None and first is not None and first < today:
            raise PastDate(f"Cannot book a hall in the past ({format_date(first)}). Please select a future date.")

        if first is None:
            return shape

        occupants = snapshot(self.source.bookings(hall), hall)
        check_conflicts(shape, occupants, exclude_id)
        logger.debug("Accepted %s request for hall=%s exclude_id=%s", shape.kind.value, hall, exclude_id)
        return shape

    def occupants_on(self, hall: Optional[str], day: Any) -> List[Occupant]:
        day = parse_date(day)
        return occupants_on(snapshot(self.source.bookings(hall), hall), day)

    def calendar_summary(self, hall: Optional[str], year: int, month: int) -> List[CalendarDay]:
        return calendar_summary(snapshot(self.source.bookings(hall), hall), year, month)
