from datetime import datetime, timedelta

import pytest

from calendar_engine.engine import SchedulingEngine
from calendar_engine.errors import ValidationError
from calendar_engine.schema import Event
from calendar_engine.selfcare import SelfCareAction, contextual_pool
from calendar_engine.storage import InMemoryStore

# Monday morning
NOW = datetime(2025, 3, 10, 8, 0)


def make_event(title, end, rating=None):
    return Event(event_id=title, title=title, start=end - timedelta(minutes=30), end=end, user_id="u1", mood_rating=rating)


def engine_for(events=None, now=NOW):
    return SchedulingEngine.from_store(InMemoryStore(events=events), clock=lambda: now)


def ids(suggestions):
    return [s.suggestion_id for s in suggestions]


def test_monday_morning_pool_without_history():
    result = engine_for().get_self_care_suggestions("u1")

    assert ids(result) == ["morning-walk", "monday-energy", "morning-stretch", "morning-coffee-mindful", "morning-planning"]
    assert all(s.confidence_score == 50 for s in result)


def test_low_mood_adds_proven_activities():
    result = engine_for().get_self_care_suggestions("u1", current_mood=2, count=3)
    assert ids(result)[:2] == ["lowmood-breathe", "lowmood-call"]


def test_pool_follows_time_of_day_and_weekday():
    sunday_evening = ids(contextual_pool(datetime(2025, 3, 9, 20, 0), None))
    friday_afternoon = ids(contextual_pool(datetime(2025, 3, 14, 13, 0), None))

    assert "evening-meditation" in sunday_evening and "sunday-rest" in sunday_evening
    assert "afternoon-break" in friday_afternoon and "friday-social" in friday_afternoon
    assert "lowmood-breathe" not in friday_afternoon


def test_history_raises_matching_suggestion():
    events = [make_event("Walk in the park", datetime(2025, 3, 6, 18, 0), rating=5)]
    walk = engine_for(events).get_self_care_suggestions("u1")[0]

    assert walk.suggestion_id == "morning-walk"
    assert walk.confidence_score == 96
    assert walk.historical_mood_impact == 100
    assert walk.completion_rate == 100


def test_very_recent_activity_is_scored_lower():
    events = [make_event("Walk to work", datetime(2025, 3, 9, 18, 0), rating=5)]
    result = engine_for(events).get_self_care_suggestions("u1", count=10)
    walk = next(s for s in result if s.suggestion_id == "morning-walk")
    assert walk.confidence_score == 86


def test_acted_on_suggestions_are_not_repeated():
    engine = engine_for()
    assert engine.record_self_care_action("u1", "morning-walk", "completed_now") == SelfCareAction.COMPLETED_NOW

    assert "morning-walk" not in ids(engine.get_self_care_suggestions("u1"))
    assert "morning-walk" in ids(engine.get_self_care_suggestions("u2"))


def test_generic_catalog_when_everything_was_used():
    engine = engine_for()
    for suggestion_id in ids(contextual_pool(NOW, None)):
        engine.record_self_care_action("u1", suggestion_id, SelfCareAction.DISMISSED)

    result = engine.get_self_care_suggestions("u1", count=2)
    assert ids(result) == ["generic-breathe", "generic-walk"]


def test_marks_expire_after_window():
    store = InMemoryStore()
    engine = SchedulingEngine.from_store(store, clock=lambda: NOW)
    engine.record_self_care_action("u1", "morning-walk", "scheduled", used_at=NOW - timedelta(hours=49))
    assert "morning-walk" in ids(engine.get_self_care_suggestions("u1"))


@pytest.mark.parametrize("count", [0, 11])
def test_count_out_of_range_is_rejected(count):
    with pytest.raises(ValidationError):
        engine_for().get_self_care_suggestions("u1", count=count)


def test_invalid_action_is_rejected():
    with pytest.raises(ValidationError):
        engine_for().record_self_care_action("u1", "morning-walk", "ignored")
