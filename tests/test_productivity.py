from datetime import datetime, timedelta

import pytest

from calendar_engine.engine import SchedulingEngine
from calendar_engine.errors import ValidationError
from calendar_engine.productivity import is_work_event, normalize_mood, time_of_day
from calendar_engine.schema import Event
from calendar_engine.storage import InMemoryStore

# Monday
NOW = datetime(2025, 3, 10, 8, 0)


def make_event(event_id, start, minutes, category_id, name, rating=None):
    return Event(
        event_id=event_id,
        title=event_id,
        start=start,
        end=start + timedelta(minutes=minutes),
        user_id="u1",
        category_id=category_id,
        category_name=name,
        mood_rating=rating,
    )


def sample_events():
    return [
        make_event("standup", datetime(2025, 3, 3, 9, 0), 60, "work", "Work", 5),
        make_event("deep-work", datetime(2025, 3, 6, 10, 30), 105, "work", "Work", 4),
        make_event("inbox", datetime(2025, 3, 4, 15, 0), 60, "admin", "Office admin", 1),
        make_event("yoga", datetime(2025, 3, 5, 7, 0), 60, "yoga", "Yoga", 5),
    ]


def analyze(events, **kwargs):
    return SchedulingEngine.from_store(InMemoryStore(events=events), clock=lambda: NOW).analyze_productivity(
        "u1", **kwargs
    )


def test_hourly_scores_split_events_across_hours():
    hourly = analyze(sample_events()).hourly

    assert len(hourly) == 24
    assert hourly[9].productivity_score == pytest.approx(88.25)
    assert hourly[9].average_mood == 5.0
    assert hourly[9].completion_rate == 100.0
    for hour in (10, 11, 12):
        assert hourly[hour].productivity_score == pytest.approx(73.25)
        assert hourly[hour].total_events == 1
    assert hourly[15].productivity_score == pytest.approx(28.25)
    assert hourly[7].total_events == 0


def test_golden_and_low_energy_ranges():
    analysis = analyze(sample_events())

    assert len(analysis.golden_hours) == 1
    golden = analysis.golden_hours[0]
    assert (golden.start_hour, golden.end_hour) == (9, 13)
    assert golden.average_productivity_score == pytest.approx(77.0)
    assert golden.description == "Morning: 09:00 - 13:00"

    assert [(r.start_hour, r.end_hour, r.description) for r in analysis.low_energy_hours] == [
        (15, 16, "Afternoon: 15:00 - 16:00")
    ]


def test_only_work_events_are_analyzed_when_present():
    analysis = analyze(sample_events())
    assert analysis.total_events_analyzed == 3
    assert analysis.total_mood_records_analyzed == 3
    assert [c.category_id for c in analysis.categories] == ["work", "admin"]


def test_falls_back_to_all_events_without_work_categories():
    analysis = analyze([make_event("yoga", datetime(2025, 3, 5, 7, 0), 60, "yoga", "Yoga", 5)])
    assert analysis.total_events_analyzed == 1
    assert analysis.hourly[7].total_events == 1


def test_weekday_and_category_productivity():
    analysis = analyze(sample_events())

    monday, tuesday, thursday = analysis.daily[0], analysis.daily[1], analysis.daily[3]
    assert monday.day_name == "Monday"
    assert monday.productivity_score == pytest.approx(87.5)
    assert tuesday.productivity_score == pytest.approx(32.5)
    assert thursday.productivity_score == pytest.approx(73.75)
    assert analysis.daily[6].total_events == 0

    work = analysis.categories[0]
    assert work.average_productivity_score == pytest.approx(92.5)
    assert work.optimal_hours == [9, 10]
    assert work.best_day_of_week == 0


def test_recommendations_are_ordered_by_priority():
    recommendations = analyze(sample_events()).recommendations

    assert [r.recommendation_type for r in recommendations] == [
        "golden-hours",
        "low-energy-warning",
        "best-day",
        "category-optimization",
        "category-optimization",
    ]
    golden = recommendations[0]
    assert golden.suggested_hours == [9, 10, 11]
    assert "between 09:00 and 12:00 (average mood 4.3/5)" in golden.description
    assert recommendations[2].title == "Mondays are your most productive days"
    assert recommendations[3].affected_categories == ["Work"]


def test_timezone_offset_shifts_hours():
    event = make_event("standup", datetime(2025, 3, 3, 12, 0), 60, "work", "Work", 5)
    analysis = analyze([event], timezone_offset_minutes=-180)

    assert analysis.hourly[9].total_events == 1
    assert analysis.hourly[12].total_events == 0
    assert analysis.period_start == datetime(2025, 2, 9, 3, 0)


def test_empty_history():
    analysis = analyze([])
    assert analysis.golden_hours == []
    assert analysis.recommendations == []
    assert all(day.total_events == 0 for day in analysis.daily)


def test_invalid_period_is_rejected():
    with pytest.raises(ValidationError):
        analyze([], period_days=0)


def test_helpers():
    assert normalize_mood(1) == 0.0
    assert normalize_mood(5) == 1.0
    assert time_of_day(13) == "Midday"
    assert time_of_day(3) == "Early morning"
    assert is_work_event(make_event("x", NOW, 30, "c", "Trabajo remoto"))
    assert not is_work_event(make_event("y", NOW, 30, None, None))
