"""Unit tests for the day occupancy resolver."""
import logging
from datetime import date

from hallbooking.occupancy import effective_window, normalize_hall, occupants_on, same_hall, snapshot
from hallbooking.timeutils import TimeRange

BOOKINGS = [
    {"id": 1, "hall_name": "H1", "date": "2025-03-10", "start_time": "10:00", "end_time": "12:00"},
    {"id": 2, "hall_name": " h1 ", "start_date": "2025-03-09", "end_date": "2025-03-11"},
    {"id": 3, "hall_name": "H2", "date": "2025-03-10", "start_time": "08:00", "end_time": "09:00"},
    {"id": 4, "hall_name": "H1", "slot": "Morning"},
]


def test_normalize_hall():
    assert normalize_hall("  Main Hall ") == "main hall"
    assert normalize_hall("   ") is None
    assert normalize_hall(None) is None


def test_same_hall_without_filter_matches_everything():
    assert same_hall({"hall_name": "anything"}, None) is True
    assert same_hall({"hall_name": "H1"}, "h1") is True
    assert same_hall({"hall_name": "H2"}, "h1") is False


def test_snapshot_filters_hall_and_drops_slot_labels():
    occupants = snapshot(BOOKINGS, "H1")
    assert [occupant.id for occupant in occupants] == [1, 2]


def test_snapshot_without_hall_keeps_every_hall():
    assert [occupant.id for occupant in snapshot(BOOKINGS)] == [1, 2, 3]


def test_occupants_on_a_day():
    occupants = snapshot(BOOKINGS, "H1")
    assert [o.id for o in occupants_on(occupants, date(2025, 3, 10))] == [1, 2]
    assert [o.id for o in occupants_on(occupants, date(2025, 3, 9))] == [2]
    assert occupants_on(occupants, date(2025, 3, 12)) == []


def test_occupants_on_excludes_edited_booking_by_id():
    occupants = snapshot(BOOKINGS, "H1")
    assert [o.id for o in occupants_on(occupants, date(2025, 3, 10), exclude_id="1")] == [2]


def test_duplicate_records_are_counted_once():
    occupants = snapshot(BOOKINGS[:1] * 2)
    assert len(occupants_on(occupants, date(2025, 3, 10))) == 1


def test_occupants_on_is_idempotent():
    occupants = snapshot(BOOKINGS, "H1")
    assert occupants_on(occupants, date(2025, 3, 10)) == occupants_on(occupants, date(2025, 3, 10))


def test_effective_window():
    time_wise, day_wise = snapshot(BOOKINGS, "H1")
    assert effective_window(time_wise, date(2025, 3, 10)) == TimeRange(600, 720)
    assert effective_window(day_wise, date(2025, 3, 10)) is None


def test_corrupt_record_is_logged_and_skipped(caplog):
    records = BOOKINGS[:1] + [{"id": 9, "hall_name": "H1", "date": "2025-03-10", "start_time": "25:00", "end_time": "26:00"}]

    with caplog.at_level(logging.WARNING, logger="hallbooking.occupancy"):
        occupants = snapshot(records, "H1")

    assert [occupant.id for occupant in occupants] == [1]
    assert "id=9" in caplog.text


def test_persisted_ranges_ignore_length_cap():
    long_range = {"id": 5, "hall_name": "H1", "start_date": "2025-03-01", "end_date": "2025-03-20"}
    assert len(snapshot([long_range])) == 1


def test_rows_with_unreadable_day_slots_are_skipped(caplog):
    records = BOOKINGS[:1] + [
        {"id": 7, "hall_name": "H1", "start_date": "2025-03-10", "end_date": "2025-03-11", "day_slots": ["2025-03-10"]},
        {"id": 8, "hall_name": "H1", "start_date": "2025-03-10", "end_date": "2025-03-11", "day_slots": "garbage"},
        {"id": 9, "hall_name": "H1", "start_date": "2025-03-10", "end_date": "2025-03-11", "day_slots": {"2025-03-10": 5}},
    ]

    with caplog.at_level(logging.WARNING, logger="hallbooking.occupancy"):
        occupants = snapshot(records, "H1")

    assert [occupant.id for occupant in occupants] == [1]
    assert "id=7" in caplog.text
    assert "id=8" in caplog.text
