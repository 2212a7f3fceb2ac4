"""Unit tests for conflict checking."""
from datetime import date

import pytest

from hallbooking.conflicts import check_conflicts
from hallbooking.errors import BookingConflict, FullDayBooked, RangeBlocked, SlotTaken
from hallbooking.occupancy import snapshot
from hallbooking.shapes import validate_shape


def time_request(day, start, end):
    return validate_shape({"date": day, "start_time": start, "end_time": end})


def range_request(first, last, day_slots=None):
    return validate_shape({"start_date": first, "end_date": last, "day_slots": day_slots})


class TestTimeWiseRequests:
    """Time-wise request against existing bookings."""

    existing = snapshot([{"id": 1, "hall_name": "H1", "date": "2025-03-10", "start_time": "10:00", "end_time": "12:00"}])

    def test_overlap_is_rejected(self):
        with pytest.raises(SlotTaken) as exc_info:
            check_conflicts(time_request("2025-03-10", "11:00", "13:00"), self.existing)

        assert exc_info.value.conflicting_id == 1
        assert exc_info.value.day == date(2025, 3, 10)

    def test_touching_endpoints_are_accepted(self):
        check_conflicts(time_request("2025-03-10", "12:00", "13:00"), self.existing)
        check_conflicts(time_request("2025-03-10", "09:00", "10:00"), self.existing)

    def test_other_day_is_free(self):
        check_conflicts(time_request("2025-03-11", "10:00", "12:00"), self.existing)

    def test_editing_to_same_values_excludes_itself(self):
        check_conflicts(time_request("2025-03-10", "10:00", "12:00"), self.existing, exclude_id=1)

    def test_full_day_booking_blocks(self):
        full_day = snapshot([{"id": 7, "hall_name": "H1", "start_date": "2025-04-01", "end_date": "2025-04-03"}])
        with pytest.raises(FullDayBooked) as exc_info:
            check_conflicts(time_request("2025-04-02", "09:00", "10:00"), full_day)
        assert exc_info.value.code == "FULL_DAY_BOOKED"

    def test_partial_day_of_range(self):
        partial = snapshot(
            [
                {
                    "id": 8,
                    "hall_name": "H1",
                    "start_date": "2025-05-01",
                    "end_date": "2025-05-05",
                    "day_slots": {"2025-05-03": {"start_time": "09:00", "end_time": "11:00"}},
                }
            ]
        )
        check_conflicts(time_request("2025-05-03", "13:00", "14:00"), partial)
        with pytest.raises(SlotTaken):
            check_conflicts(time_request("2025-05-03", "10:00", "14:00"), partial)
        with pytest.raises(FullDayBooked):
            check_conflicts(time_request("2025-05-01", "13:00", "14:00"), partial)


class TestDayWiseRequests:
    """Day-wise request against existing bookings."""

    existing = snapshot([{"id": 3, "hall_name": "H1", "date": "2025-06-02", "start_time": "09:00", "end_time": "10:00"}])

    def test_full_day_range_blocked_by_any_booking(self):
        with pytest.raises(RangeBlocked) as exc_info:
            check_conflicts(range_request("2025-06-01", "2025-06-03"), self.existing)
        assert exc_info.value.day == date(2025, 6, 2)
        assert exc_info.value.conflicting_id == 3

    def test_override_avoiding_existing_slot(self):
        request = range_request("2025-06-01", "2025-06-03", {"2025-06-02": {"start_time": "10:00", "end_time": "12:00"}})
        check_conflicts(request, self.existing)

    def test_override_overlapping_existing_slot(self):
        request = range_request("2025-06-01", "2025-06-03", {"2025-06-02": {"start_time": "09:30", "end_time": "12:00"}})
        with pytest.raises(SlotTaken):
            check_conflicts(request, self.existing)

    def test_override_against_full_day_occupant(self):
        full_day = snapshot([{"id": 4, "hall_name": "H1", "start_date": "2025-06-02", "end_date": "2025-06-02"}])
        request = range_request("2025-06-01", "2025-06-03", {"2025-06-02": {"start_time": "10:00", "end_time": "12:00"}})
        with pytest.raises(RangeBlocked):
            check_conflicts(request, full_day)

    def test_first_conflicting_date_is_reported(self):
        occupants = snapshot(
            [
                {"id": 10, "hall_name": "H1", "date": "2025-06-05", "start_time": "09:00", "end_time": "10:00"},
                {"id": 11, "hall_name": "H1", "date": "2025-06-03", "start_time": "09:00", "end_time": "10:00"},
            ]
        )
        with pytest.raises(BookingConflict) as exc_info:
            check_conflicts(range_request("2025-06-01", "2025-06-07"), occupants)
        assert exc_info.value.day == date(2025, 6, 3)
        assert exc_info.value.conflicting_id == 11

    def test_editing_range_excludes_itself(self):
        own = snapshot([{"id": 12, "hall_name": "H1", "start_date": "2025-07-01", "end_date": "2025-07-02"}])
        check_conflicts(range_request("2025-07-01", "2025-07-02"), own, exclude_id=12)


def test_slot_label_requests_never_conflict():
    check_conflicts(validate_shape({"slot": "Morning"}), TestTimeWiseRequests.existing)
