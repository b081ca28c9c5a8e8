"""Demo script for calendar-engine."""

import sys
from datetime import date, datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from calendar_engine.engine import SchedulingEngine
from calendar_engine.schema import Event, FeedbackSubmission, MoodEntry
from calendar_engine.storage import InMemoryStore


def _event(event_id, start, minutes, category_id=None, rating=None):
    return Event(
        event_id=event_id,
        title=event_id.replace("-", " ").title(),
        start=start,
        end=start + timedelta(minutes=minutes),
        user_id="demo",
        category_id=category_id,
        category_name=category_id.title() if category_id else None,
        mood_rating=rating,
    )


def main() -> None:
    now = datetime(2025, 3, 10, 8, 0)
    store = InMemoryStore(
        events=[
            _event("morning-run", datetime(2025, 3, 3, 7, 0), 45, "running", 5),
            _event("evening-run", datetime(2025, 3, 5, 19, 0), 30, "running", 4),
            _event("team-sync", datetime(2025, 3, 11, 9, 0), 60),
            _event("design-review", datetime(2025, 3, 11, 9, 30), 60),
        ],
        mood_entries=[MoodEntry("demo", date(2025, 3, day), rating) for day, rating in [(6, 4), (7, 3), (8, 5), (9, 4)]],
    )
    engine = SchedulingEngine.from_store(store, clock=lambda: now)

    recommendations = engine.get_recommendations("demo")
    for rec in recommendations:
        print(f"{rec.confidence:.2f} {rec.suggested_start:%a %H:%M} {rec.title}: {rec.reason}")

    engine.record_feedback("demo", FeedbackSubmission(recommendations[0].recommendation_id, accepted=True, mood_after=5))
    print("Feedback:", engine.get_feedback_summary("demo", now - timedelta(days=7)))

    for suggestion in engine.generate_schedule_suggestions("demo"):
        print(f"[{suggestion.priority}] {suggestion.description} ({suggestion.confidence_score}%)")


if __name__ == "__main__":
    main()
