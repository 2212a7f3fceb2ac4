"""Booking shapes and the validator that turns raw records into them.

A raw booking (ORM row, request schema, plain mapping) carries many optional
fields. :func:`validate_shape` is the only place that inspects them; the rest
of the engine works on :class:`TimeWise`, :class:`DayWise` or
:class:`SlotLabel`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, Mapping, Optional, Union

from .errors import InvalidDateFormat, InvalidShape, RangeTooLong, ReversedRange, ReversedTime
from .timeutils import TimeRange, format_date, is_ordered, iter_dates, parse_date


class ShapeKind(str, Enum):
    TIME_WISE = "TIME_WISE"
    DAY_WISE = "DAY_WISE"
    SLOT_ONLY = "SLOT_ONLY"


@dataclass(frozen=True)
class TimeWise:
    day: date
    window: TimeRange

    kind: ClassVar[ShapeKind] = ShapeKind.TIME_WISE

    def covers(self, day: date) -> bool:
        return day == self.day

    def window_on(self, day: date) -> Optional[TimeRange]:
        return self.window

    def dates(self) -> Iterator[date]:
        yield self.day


@dataclass(frozen=True)
class DayWise:
    start_date: date
    end_date: date
    overrides: Dict[date, TimeRange] = field(default_factory=dict)

    kind: ClassVar[ShapeKind] = ShapeKind.DAY_WISE

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def window_on(self, day: date) -> Optional[TimeRange]:
        """Override window for ``day``, or None when the day is booked in full."""
        return self.overrides.get(day)

    def dates(self) -> Iterator[date]:
        return iter_dates(self.start_date, self.end_date)

    @property
    def length(self) -> int:
        return (self.end_date - self.start_date).days + 1


@dataclass(frozen=True)
class SlotLabel:
    """Legacy booking identified only by a label such as "Morning"."""

    text: str

    kind: ClassVar[ShapeKind] = ShapeKind.SLOT_ONLY

    def covers(self, day: date) -> bool:
        return False

    def window_on(self, day: date) -> Optional[TimeRange]:
        return None

    def dates(self) -> Iterator[date]:
        return iter(())


Shape = Union[TimeWise, DayWise, SlotLabel]


def field_value(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _slot_times(slot: Any, day: date) -> tuple[Any, Any]:
    if isinstance(slot, Mapping):
        return (
            slot.get("start_time", slot.get("startTime")),
            slot.get("end_time", slot.get("endTime")),
        )
    if hasattr(slot, "start_time") and hasattr(slot, "end_time"):
        return slot.start_time, slot.end_time
    raise InvalidShape(f"day_slots entry for {format_date(day)} has no start_time/end_time")


def validate_shape(record: Any, max_days: Optional[int] = None) -> Shape:
    """Classify ``record`` and check it is internally consistent.

    ``max_days`` caps the inclusive length of day-wise ranges; pass None when
    reading bookings that were accepted under an earlier policy.

    Raises a :class:`~hallbooking.errors.BookingError` subclass on failure.
    """
    day_slots = field_value(record, "day_slots") or {}
    if not isinstance(day_slots, Mapping):
        raise InvalidShape("day_slots must map dates to start_time/end_time")
    has_time = all(_present(field_value(record, name)) for name in ("date", "start_time", "end_time"))
    has_day = _present(field_value(record, "start_date")) and _present(field_value(record, "end_date"))

    if day_slots and not has_day:
        raise InvalidShape("day_slots provided without start_date/end_date")
    if has_time and has_day:
        raise InvalidShape("Provide either date+start_time+end_time or start_date+end_date, not both")

    slot = field_value(record, "slot")
    if not has_time and not has_day and not _present(slot):
        raise InvalidShape(
            "Invalid booking payload. Provide either date+start_time+end_time (time booking), "
            "start_date+end_date (day booking) or a slot label."
        )

    for name in ("date", "start_date", "end_date"):
        value = field_value(record, name)
        if _present(value):
            parse_date(value)

    if has_day:
        return _day_wise(record, day_slots, max_days)
    if has_time:
        return _time_wise(record)
    return SlotLabel(str(slot).strip())


def _time_wise(record: Any) -> TimeWise:
    start, end = field_value(record, "start_time"), field_value(record, "end_time")
    if not is_ordered(start, end):
        raise ReversedTime("Invalid time range: end_time must be after start_time")
    return TimeWise(parse_date(field_value(record, "date")), TimeRange.parse(start, end))


def _day_wise(record: Any, day_slots: Mapping[Any, Any], max_days: Optional[int]) -> DayWise:
    start_date = parse_date(field_value(record, "start_date"))
    end_date = parse_date(field_value(record, "end_date"))
    if end_date < start_date:
        raise ReversedRange("Invalid date range: end_date is before start_date")

    length = (end_date - start_date).days + 1
    if max_days is not None and length > max_days:
        raise RangeTooLong(
            f"Maximum booking duration is {max_days} days, requested {length}. Please choose a shorter range."
        )

    overrides: Dict[date, TimeRange] = {}
    for key, slot in day_slots.items():
        try:
            day = parse_date(key)
        except InvalidDateFormat as exc:
            raise InvalidShape(f"day_slots key is not a valid date: {key}") from exc
        if not start_date <= day <= end_date:
            raise InvalidShape(f"day_slots contains a date outside start_date..end_date: {key}")
        if slot is None:
            continue
        start, end = _slot_times(slot, day)
        if not is_ordered(start, end):
            raise ReversedTime(f"Invalid time range in day_slots for {format_date(day)}")
        overrides[day] = TimeRange.parse(start, end)

    return DayWise(start_date, end_date, overrides)
