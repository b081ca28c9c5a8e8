"""JSON adapter for calendar events and mood entries."""

from __future__ import annotations

import json

from calendar_engine.adapters.records import to_event, to_mood_entry
from calendar_engine.errors import ValidationError
from calendar_engine.schema import Event, MoodEntry


def _load_items(file_path: str) -> list:
    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    if not isinstance(payload, list):
        raise ValidationError("JSON payload must be a list of objects")
    return payload


def parse_events(file_path: str) -> list[Event]:
    """Parse a JSON list of events."""

    return [to_event(item, f"Item {i}") for i, item in enumerate(_load_items(file_path), start=1)]


def parse_moods(file_path: str) -> list[MoodEntry]:
    """Parse a JSON list of daily mood entries."""

    return [to_mood_entry(item, f"Item {i}") for i, item in enumerate(_load_items(file_path), start=1)]
