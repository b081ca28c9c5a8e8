from datetime import date, datetime, timedelta

from calendar_engine.scheduling import find_next_available_slot, overlaps

REFERENCE = date(2025, 3, 10)
NOW = datetime(2025, 3, 10, 8, 0)
NINE_AM = timedelta(hours=9)


def test_free_preferred_time_is_returned_unchanged():
    assert find_next_available_slot(REFERENCE, NINE_AM, [], now=NOW) == datetime(2025, 3, 10, 9, 0)


def test_past_candidate_moves_to_next_day():
    later = datetime(2025, 3, 10, 10, 0)
    assert find_next_available_slot(REFERENCE, NINE_AM, [], now=later) == datetime(2025, 3, 11, 9, 0)


def test_busy_day_is_skipped():
    occupied = [(datetime(2025, 3, 10, 8, 30), datetime(2025, 3, 10, 9, 30))]
    result = find_next_available_slot(REFERENCE, NINE_AM, occupied, now=NOW)
    assert result == datetime(2025, 3, 11, 9, 0)
    assert not any(overlaps(result, result + timedelta(minutes=60), s, e) for s, e in occupied)


def test_back_to_back_interval_does_not_overlap():
    occupied = [(datetime(2025, 3, 10, 8, 0), datetime(2025, 3, 10, 9, 0))]
    assert find_next_available_slot(REFERENCE, NINE_AM, occupied, now=NOW) == datetime(2025, 3, 10, 9, 0)


def test_fully_booked_lookahead_returns_first_candidate():
    occupied = [
        (datetime(2025, 3, 10, 9, 0) + timedelta(days=offset), datetime(2025, 3, 10, 10, 0) + timedelta(days=offset))
        for offset in range(7)
    ]
    assert find_next_available_slot(REFERENCE, NINE_AM, occupied, now=NOW) == datetime(2025, 3, 10, 9, 0)


def test_lookahead_and_slot_length_are_configurable():
    occupied = [(datetime(2025, 3, 10, 9, 20), datetime(2025, 3, 10, 9, 40))]
    assert find_next_available_slot(REFERENCE, NINE_AM, occupied, now=NOW, slot_minutes=15) == datetime(2025, 3, 10, 9, 0)
    assert find_next_available_slot(REFERENCE, NINE_AM, occupied, now=NOW, lookahead_days=1) == datetime(2025, 3, 10, 9, 0)
