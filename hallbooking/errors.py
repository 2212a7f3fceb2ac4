"""Validation and conflict errors raised by the booking engine.

Every error is user-correctable: services translate them into a 400 response
carrying ``code`` so clients can branch without parsing messages.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Optional


class BookingError(Exception):
    """Base class for all booking engine errors."""

    code = "BOOKING_ERROR"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidShape(BookingError):
    code = "INVALID_SHAPE"


class ReversedRange(InvalidShape):
    code = "REVERSED_RANGE"


class InvalidMonth(InvalidShape):
    code = "INVALID_MONTH"


class InvalidDateFormat(BookingError):
    code = "INVALID_DATE_FORMAT"


class MalformedTime(BookingError):
    code = "MALFORMED_TIME"


class ReversedTime(BookingError):
    code = "REVERSED_TIME"


class RangeTooLong(BookingError):
    code = "RANGE_TOO_LONG"


class HallRequired(BookingError):
    code = "HALL_REQUIRED"


class PastDate(BookingError):
    code = "PAST_DATE"


class BookingConflict(BookingError):
    """The request collides with an existing booking on ``day``."""

    code = "CONFLICT"

    def __init__(self, message: str, day: date, conflicting_id: Optional[Any] = None) -> None:
        super().__init__(message)
        self.day = day
        self.conflicting_id = conflicting_id


class FullDayBooked(BookingConflict):
    code = "FULL_DAY_BOOKED"


class RangeBlocked(BookingConflict):
    code = "RANGE_BLOCKED"


class SlotTaken(BookingConflict):
    code = "SLOT_TAKEN"
