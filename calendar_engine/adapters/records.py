"""Record-to-schema conversion shared by the file adapters."""

from __future__ import annotations

from datetime import date, datetime, timezone

from calendar_engine.errors import ValidationError
from calendar_engine.schema import Event, MoodEntry

EVENT_REQUIRED_FIELDS = ("event_id", "title", "start", "end", "user_id")
MOOD_REQUIRED_FIELDS = ("entry_date", "mood_rating", "user_id")


def _text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _rating(value, label: str, field_name: str) -> int | None:
    if value in (None, ""):
        return None
    try:
        rating = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{label}: invalid {field_name}") from exc
    if not 1 <= rating <= 5:
        raise ValidationError(f"{label}: {field_name} must be between 1 and 5")
    return rating


def _timestamp(value) -> datetime:
    """Parse ISO-8601; offset-aware values are converted to naive UTC."""

    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _require(record, required: tuple, label: str) -> None:
    if not isinstance(record, dict):
        raise ValidationError(f"{label}: expected an object")
    missing = [name for name in required if record.get(name) in (None, "")]
    if missing:
        raise ValidationError(f"{label}: missing required fields {missing}")


def to_event(record: dict, label: str) -> Event:
    _require(record, EVENT_REQUIRED_FIELDS, label)

    try:
        start = _timestamp(record["start"])
        end = _timestamp(record["end"])
    except ValueError as exc:
        raise ValidationError(f"{label}: malformed timestamp") from exc

    if end <= start:
        raise ValidationError(f"{label}: end must be after start")

    return Event(
        event_id=str(record["event_id"]).strip(),
        title=str(record["title"]).strip(),
        start=start,
        end=end,
        user_id=str(record["user_id"]).strip(),
        category_id=_text(record.get("category_id")),
        category_name=_text(record.get("category_name")),
        category_color=_text(record.get("category_color")),
        mood_rating=_rating(record.get("mood_rating"), label, "mood_rating"),
    )


def to_mood_entry(record: dict, label: str) -> MoodEntry:
    _require(record, MOOD_REQUIRED_FIELDS, label)

    try:
        entry_date = date.fromisoformat(str(record["entry_date"]))
    except ValueError as exc:
        raise ValidationError(f"{label}: malformed entry_date") from exc

    return MoodEntry(
        user_id=str(record["user_id"]).strip(),
        entry_date=entry_date,
        mood_rating=_rating(record["mood_rating"], label, "mood_rating"),
        notes=_text(record.get("notes")),
    )
