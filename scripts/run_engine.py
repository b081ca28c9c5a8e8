"""Run the scheduling engine over CSV/JSON event and mood files."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import date, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from calendar_engine.adapters import csv_adapter, json_adapter
from calendar_engine.config import settings
from calendar_engine.engine import SchedulingEngine
from calendar_engine.recent import RecentSuggestionStore
from calendar_engine.storage import InMemoryStore


def _adapter_for(path: Path):
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return csv_adapter
    if suffix == ".json":
        return json_adapter
    raise ValueError("Unsupported input format, expected .csv or .json")


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate recommendations and calendar-health suggestions")
    parser.add_argument("--events", required=True, help="Path to CSV/JSON events file")
    parser.add_argument("--moods", help="Path to CSV/JSON daily mood file")
    parser.add_argument("--user", required=True, help="User id to run the engine for")
    parser.add_argument("--date", help="Reference date (YYYY-MM-DD), defaults to today")
    parser.add_argument("--limit", type=int, help="Number of recommendations (5-10)")
    parser.add_argument("--mood", type=int, help="Current mood (1-5)")
    parser.add_argument("--suggestions", action="store_true", help="Also generate calendar-health suggestions")
    parser.add_argument("--productivity", action="store_true", help="Also run the productivity analysis")
    parser.add_argument("--self-care", action="store_true", help="Also suggest self-care activities")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    events_path = Path(args.events)
    store = InMemoryStore(events=_adapter_for(events_path).parse_events(str(events_path)))
    if args.moods:
        moods_path = Path(args.moods)
        for entry in _adapter_for(moods_path).parse_moods(str(moods_path)):
            store.add_mood_entry(entry)

    recent = RecentSuggestionStore(window=timedelta(hours=settings.recent_window_hours))
    engine = SchedulingEngine.from_store(store, settings=settings, recent_store=recent)
    reference_date = date.fromisoformat(args.date) if args.date else None

    report = {
        "recommendations": [
            asdict(rec)
            for rec in engine.get_recommendations(
                args.user, reference_date=reference_date, limit=args.limit, current_mood=args.mood
            )
        ]
    }
    if args.suggestions:
        report["schedule_suggestions"] = [asdict(s) for s in engine.generate_schedule_suggestions(args.user)]
    if args.productivity:
        report["productivity"] = asdict(engine.analyze_productivity(args.user))
    if args.self_care:
        report["self_care"] = [asdict(s) for s in engine.get_self_care_suggestions(args.user, current_mood=args.mood)]

    print(json.dumps(report, indent=2, default=str))


if __name__ == "__main__":
    main()
