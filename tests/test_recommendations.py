from datetime import date, datetime, timedelta

import pytest

from calendar_engine.engine import SchedulingEngine
from calendar_engine.errors import StorageError, ValidationError
from calendar_engine.recent import RecentSuggestionStore
from calendar_engine.recommendations import clamp_count, rank_recommendations
from calendar_engine.schema import Event, MoodEntry, Recommendation, RecommendationType
from calendar_engine.storage import InMemoryStore

NOW = datetime(2025, 3, 10, 8, 0)
REFERENCE = date(2025, 3, 10)


def make_event(event_id, start, minutes=60, category_id="run", rating=None, name="Running"):
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


def moods(ratings, first_day=1):
    return [MoodEntry("u1", date(2025, 3, first_day + i), rating) for i, rating in enumerate(ratings)]


def engine_for(store, **kwargs):
    return SchedulingEngine.from_store(store, clock=lambda: NOW, **kwargs)


def ids(recommendations):
    return [rec.recommendation_id for rec in recommendations]


def test_no_history_returns_single_fallback():
    result = engine_for(InMemoryStore()).get_recommendations("u1", reference_date=REFERENCE)
    assert len(result) == 1
    fallback = result[0]
    assert fallback.recommendation_id == "fallback-20250310"
    assert fallback.confidence == 0.3
    assert fallback.suggested_start == datetime(2025, 3, 10, 18, 0)
    assert fallback.recommendation_type == RecommendationType.WELLBEING


def test_downtrend_triggers_micro_break():
    store = InMemoryStore(mood_entries=moods([2, 2, 3, 2, 1], first_day=5))
    result = engine_for(store).get_recommendations("u1", reference_date=REFERENCE)
    assert "mood-reset-20250310" in ids(result)
    micro_break = next(rec for rec in result if rec.recommendation_id == "mood-reset-20250310")
    assert micro_break.suggested_start == datetime(2025, 3, 10, 17, 0)
    assert micro_break.suggested_duration_minutes == 20


def test_current_mood_override_triggers_micro_break():
    store = InMemoryStore(mood_entries=moods([4, 4]))
    result = engine_for(store).get_recommendations("u1", reference_date=REFERENCE, current_mood=2)
    assert "mood-reset-20250310" in ids(result)


def test_cold_start_with_mood_history_suggests_wind_down():
    store = InMemoryStore(mood_entries=moods([3, 3]))
    result = engine_for(store).get_recommendations("u1", reference_date=REFERENCE)
    assert ids(result) == ["routine-evening-20250310"]
    assert result[0].suggested_start == datetime(2025, 3, 10, 19, 0)
    assert result[0].recommendation_type == RecommendationType.REST


def test_good_week_triggers_celebration():
    store = InMemoryStore(mood_entries=moods([5] * 7, first_day=3))
    result = engine_for(store).get_recommendations("u1", reference_date=REFERENCE)
    celebration = next(rec for rec in result if rec.recommendation_id == "mood-celebration-20250310")
    assert celebration.suggested_start == datetime(2025, 3, 11, 21, 0)
    assert celebration.recommendation_type == RecommendationType.REFLECTION


def test_category_recommendation_reuses_best_event():
    store = InMemoryStore(
        events=[
            make_event("run-ok", datetime(2025, 3, 1, 18, 0), minutes=20, rating=3),
            make_event("run-best", datetime(2025, 3, 3, 7, 0), minutes=45, rating=5),
        ]
    )
    result = engine_for(store).get_recommendations("u1", reference_date=REFERENCE)

    category = result[0]
    assert category.recommendation_id == "category-run-20250310"
    assert category.category_id == "run"
    assert category.suggested_start == datetime(2025, 3, 11, 7, 0)
    assert category.suggested_duration_minutes == 45
    assert category.mood_impact == "Expected impact: 4.0/5"
    assert "very good" in category.reason


def test_short_exemplar_gets_minimum_duration():
    store = InMemoryStore(events=[make_event("run", datetime(2025, 3, 3, 18, 0), minutes=15, rating=4)])
    result = engine_for(store).get_recommendations("u1", reference_date=REFERENCE)
    assert result[0].suggested_duration_minutes == 30


def test_category_slot_avoids_upcoming_events():
    store = InMemoryStore(
        events=[
            make_event("run-best", datetime(2025, 3, 3, 7, 0), minutes=45, rating=5),
            make_event("busy", datetime(2025, 3, 11, 7, 0), category_id="work", name="Work"),
        ]
    )
    result = engine_for(store).get_recommendations("u1", reference_date=REFERENCE)
    by_id = {rec.recommendation_id: rec for rec in result}
    assert by_id["category-run-20250310"].suggested_start == datetime(2025, 3, 12, 7, 0)
    assert by_id["routine-morning-20250310"].suggested_start == datetime(2025, 3, 11, 8, 0)


def test_results_are_unique_ranked_and_valid():
    events = [
        make_event(f"e{i}", datetime(2025, 2, 10 + i, 7 + i, 0), category_id=f"c{i % 4}", rating=(i % 5) + 1)
        for i in range(12)
    ]
    store = InMemoryStore(events=events, mood_entries=moods([4, 5, 4, 5, 5, 4, 5]))
    result = engine_for(store).get_recommendations("u1", reference_date=REFERENCE, limit=10)

    assert len(ids(result)) == len(set(ids(result)))
    confidences = [rec.confidence for rec in result]
    assert confidences == sorted(confidences, reverse=True)
    assert all(0.0 <= rec.confidence <= 1.0 for rec in result)
    assert all(rec.suggested_duration_minutes >= 10 for rec in result)


def test_limit_is_clamped():
    events = [
        make_event(f"e{i}", datetime(2025, 3, 1, 9, 0) + timedelta(days=i % 5), category_id=f"c{i}", rating=4)
        for i in range(12)
    ]
    engine = engine_for(InMemoryStore(events=events))
    assert len(engine.get_recommendations("u1", reference_date=REFERENCE, limit=50)) == 10
    assert len(engine.get_recommendations("u1", reference_date=REFERENCE, limit=1)) == 5
    assert len(engine.get_recommendations("u1", reference_date=REFERENCE)) == 6


def test_clamp_count_defaults():
    assert clamp_count(None) == 6
    assert clamp_count(3) == 5
    assert clamp_count(12) == 10
    assert clamp_count(7) == 7


def test_out_of_range_current_mood_is_rejected():
    with pytest.raises(ValidationError):
        engine_for(InMemoryStore()).get_recommendations("u1", reference_date=REFERENCE, current_mood=6)


def test_recently_used_ids_are_skipped():
    recent = RecentSuggestionStore(clock=lambda: NOW)
    recent.mark("u1", "mood-reset-20250310", NOW - timedelta(hours=1))
    store = InMemoryStore(mood_entries=moods([2, 2, 3, 2, 1], first_day=5))

    result = engine_for(store, recent_store=recent).get_recommendations("u1", reference_date=REFERENCE)
    assert "mood-reset-20250310" not in ids(result)
    assert "routine-evening-20250310" in ids(result)


def test_everything_filtered_falls_back():
    recent = RecentSuggestionStore(clock=lambda: NOW)
    recent.mark("u1", "routine-evening-20250310", NOW)
    store = InMemoryStore(mood_entries=moods([3, 3]))

    result = engine_for(store, recent_store=recent).get_recommendations("u1", reference_date=REFERENCE)
    assert ids(result) == ["fallback-20250310"]


def make_recommendation(recommendation_id, confidence, hour=9):
    return Recommendation(
        recommendation_id=recommendation_id,
        title="t",
        reason="r",
        recommendation_type="activity",
        suggested_start=datetime(2025, 3, 11, hour, 0),
        suggested_duration_minutes=30,
        confidence=confidence,
    )


def test_rank_keeps_first_duplicate_and_breaks_ties_by_start():
    ranked = rank_recommendations(
        [
            make_recommendation("a", 0.5, hour=10),
            make_recommendation("b", 0.5, hour=8),
            make_recommendation("a", 0.9),
            make_recommendation("c", 0.7),
        ],
        limit=10,
    )
    assert ids(ranked) == ["c", "b", "a"]
    assert ranked[-1].confidence == 0.5


def test_recommendation_fields_are_clamped():
    rec = make_recommendation("x", 1.7)
    rec_low = Recommendation("y", "t", "r", RecommendationType.REST, datetime(2025, 3, 11), 0, -0.2)
    assert rec.confidence == 1.0
    assert rec_low.confidence == 0.0
    assert rec_low.suggested_duration_minutes == 10


class FailingEnricher:
    def enrich(self, recommendations, external_context):
        raise RuntimeError("model unavailable")


class BoostingEnricher:
    def __init__(self):
        self.context = None

    def enrich(self, recommendations, external_context):
        self.context = external_context
        boosted = make_recommendation("rainy-day-reading", 2.0)
        return [*recommendations, recommendations[0], boosted]


def test_failing_enricher_keeps_deterministic_results():
    store = InMemoryStore(mood_entries=moods([2, 2, 3, 2, 1], first_day=5))
    plain = engine_for(store).get_recommendations("u1", reference_date=REFERENCE)
    enriched = engine_for(store, enricher=FailingEnricher()).get_recommendations(
        "u1", reference_date=REFERENCE, external_context="Rainy"
    )
    assert ids(enriched) == ids(plain)


def test_enricher_output_is_reranked_and_deduplicated():
    enricher = BoostingEnricher()
    store = InMemoryStore(mood_entries=moods([2, 2, 3, 2, 1], first_day=5))
    result = engine_for(store, enricher=enricher).get_recommendations(
        "u1", reference_date=REFERENCE, external_context="Rainy"
    )
    assert enricher.context == "Rainy"
    assert ids(result) == ["rainy-day-reading", "mood-reset-20250310", "routine-evening-20250310"]
    assert result[0].confidence == 1.0


def test_low_current_mood_after_good_week_fires_break_and_celebration():
    store = InMemoryStore(mood_entries=moods([5] * 7, first_day=3))
    result = engine_for(store).get_recommendations("u1", reference_date=REFERENCE, current_mood=2)
    assert {"mood-reset-20250310", "mood-celebration-20250310"} <= set(ids(result))


class BrokenEventStore(InMemoryStore):
    def fetch_events_in_range(self, user_id, start, end):
        raise StorageError("database unavailable")


def test_storage_errors_propagate_unchanged():
    engine = engine_for(BrokenEventStore())
    with pytest.raises(StorageError, match="database unavailable"):
        engine.get_recommendations("u1", reference_date=REFERENCE)
    with pytest.raises(StorageError, match="database unavailable"):
        engine.generate_schedule_suggestions("u1")
