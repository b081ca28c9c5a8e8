"""Recommendation feedback recording and acceptance summaries."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import numpy as np

from calendar_engine.errors import ValidationError
from calendar_engine.schema import FeedbackSubmission, FeedbackSummary, RecommendationFeedback

logger = logging.getLogger(__name__)

NOTES_MAX_LENGTH = 500


def sanitize_notes(notes: Optional[str], max_length: int = NOTES_MAX_LENGTH) -> Optional[str]:
    if notes is None or not notes.strip():
        return None
    return notes.strip()[:max_length]


def validate_mood(value: Optional[int], field_name: str) -> None:
    if value is None:
        return
    if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 5:
        raise ValidationError(f"{field_name} must be between 1 and 5, got {value}")


def record_feedback(
    feedback_store,
    user_id: str,
    submission: FeedbackSubmission,
    now: datetime,
    notes_max_length: int = NOTES_MAX_LENGTH,
) -> RecommendationFeedback:
    """Validate and upsert one feedback row per (user, recommendation id)."""

    if not submission.recommendation_id or not submission.recommendation_id.strip():
        raise ValidationError("recommendation_id is required")
    validate_mood(submission.mood_after, "mood_after")

    row = RecommendationFeedback(
        user_id=user_id,
        recommendation_id=submission.recommendation_id.strip(),
        accepted=bool(submission.accepted),
        notes=sanitize_notes(submission.notes, notes_max_length),
        mood_after=submission.mood_after,
        submitted_at=submission.submitted_at or now,
    )
    feedback_store.upsert_feedback(
        row.user_id, row.recommendation_id, row.accepted, row.notes, row.mood_after, row.submitted_at
    )

    logger.info(
        "Recommendation feedback persisted. user=%s recommendation=%s accepted=%s mood_after=%s",
        user_id,
        row.recommendation_id,
        row.accepted,
        row.mood_after,
    )
    return row


def summarize_feedback(rows: list[RecommendationFeedback], period_start: datetime, period_end: datetime) -> FeedbackSummary:
    """Compute acceptance rate (percent, 1 decimal) and mean mood-after (2 decimals)."""

    if not rows:
        return FeedbackSummary(
            total_feedback=0,
            accepted_count=0,
            rejected_count=0,
            acceptance_rate=0.0,
            average_mood_after=None,
            period_start=period_start,
            period_end=period_end,
        )

    accepted = sum(1 for row in rows if row.accepted)
    moods = [row.mood_after for row in rows if row.mood_after is not None]

    return FeedbackSummary(
        total_feedback=len(rows),
        accepted_count=accepted,
        rejected_count=len(rows) - accepted,
        acceptance_rate=round(accepted / len(rows) * 100, 1),
        average_mood_after=round(float(np.mean(moods)), 2) if moods else None,
        period_start=period_start,
        period_end=period_end,
    )


def get_feedback_summary(feedback_store, user_id: str, period_start: datetime, now: datetime) -> FeedbackSummary:
    if period_start > now:
        raise ValidationError("period_start cannot be in the future")

    rows = feedback_store.fetch_feedback_since(user_id, period_start)
    return summarize_feedback(rows, period_start, now)
