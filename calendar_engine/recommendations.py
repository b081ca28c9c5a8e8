"""Heuristic recommendation generation from category, mood and routine history."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Protocol

import numpy as np

from calendar_engine.confidence import category_confidence
from calendar_engine.features import POSITIVE_RATING
from calendar_engine.scheduling import (
    DEFAULT_LOOKAHEAD_DAYS,
    DEFAULT_SLOT_MINUTES,
    find_next_available_slot,
    occupied_intervals,
)
from calendar_engine.schema import Analytics, Event, Recommendation, RecommendationType
from calendar_engine.windows import day_start

logger = logging.getLogger(__name__)

TREND_POINTS = 5
LOW_MOOD = 2
MORNING_CUTOFF = timedelta(hours=12)
MORNING_SLOT = timedelta(hours=8)
EVENING_SLOT = timedelta(hours=19)
MIN_CATEGORY_DURATION_MINUTES = 30


class RecommendationEnricher(Protocol):
    """Optional collaborator that rewrites a deterministic recommendation list."""

    def enrich(self, recommendations: list[Recommendation], external_context: Optional[str]) -> list[Recommendation]: ...


def clamp_count(requested: Optional[int], default: int = 6, minimum: int = 5, maximum: int = 10) -> int:
    if requested is None:
        return default
    return max(minimum, min(maximum, int(requested)))


def _day_key(reference_date: date) -> str:
    return reference_date.strftime("%Y%m%d")


def _peak_event(events: list[Event]) -> Event:
    rated = [event for event in events if event.mood_rating is not None]
    if not rated:
        return events[0]
    return sorted(rated, key=lambda e: (-e.mood_rating, e.start))[0]


def _descriptor(mood_average: float) -> str:
    if mood_average >= 4.5:
        return "excellent"
    if mood_average >= 4:
        return "very good"
    return "positive"


def build_category_recommendations(
    reference_date: date,
    analytics: Analytics,
    upcoming: list[Event],
    desired: int,
    now: datetime,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> list[Recommendation]:
    """Suggest repeating the best-rated categories at their best time of day."""

    occupied = occupied_intervals(upcoming)
    suggestions = []

    for category in analytics.categories[:desired]:
        if not category.events:
            continue

        peak = _peak_event(category.events)
        preferred_time = peak.start - day_start(peak.start.date())
        suggested_start = find_next_available_slot(
            reference_date, preferred_time, occupied, now=now, lookahead_days=lookahead_days, slot_minutes=slot_minutes
        )
        duration = max(MIN_CATEGORY_DURATION_MINUTES, int(peak.duration.total_seconds() // 60))
        average = category.mood_average

        suggestions.append(
            Recommendation(
                recommendation_id=f"category-{category.category_id}-{_day_key(reference_date)}",
                title=f"Return to {category.category_name}",
                subtitle="Based on your best recent moments",
                reason=f"Your {category.category_name} events had {_descriptor(average)} results ({average:.1f}/5).",
                summary="Repeating what works reinforces your energy.",
                recommendation_type=RecommendationType.ACTIVITY,
                suggested_start=suggested_start,
                suggested_duration_minutes=duration,
                confidence=category_confidence(category, analytics.recent_mood_average),
                category_id=category.category_id,
                category_name=category.category_name,
                mood_impact=f"Expected impact: {average:.1f}/5" if average > 0 else None,
            )
        )

    return suggestions[:desired]


def build_mood_trend_recommendations(
    reference_date: date, analytics: Analytics, current_mood: Optional[int], desired: int
) -> list[Recommendation]:
    """Micro-break on a downtrend or low mood; reflection on a strong week."""

    suggestions = []
    start_of_day = day_start(reference_date)

    samples = analytics.mood_trend[-TREND_POINTS:]
    has_downtrend = len(samples) >= 3 and float(np.mean([s.mood_rating for s in samples])) <= 3
    last_mood = samples[-1].mood_rating if samples else None
    mood_reference = current_mood if current_mood is not None else last_mood

    if has_downtrend or (mood_reference is not None and mood_reference <= LOW_MOOD):
        suggestions.append(
            Recommendation(
                recommendation_id=f"mood-reset-{_day_key(reference_date)}",
                title="Restorative micro-break",
                subtitle="When energy drops, 20 minutes make a difference",
                reason="Several challenging days in a row were detected. A short active pause helps break the streak.",
                summary="Breathing and mindful stretching",
                recommendation_type=RecommendationType.WELLBEING,
                suggested_start=start_of_day + timedelta(hours=17),
                suggested_duration_minutes=20,
                confidence=0.65,
                mood_impact="Supports recovery and releases tension",
            )
        )

    recent = analytics.recent_mood_average
    if recent is not None and recent >= POSITIVE_RATING:
        suggestions.append(
            Recommendation(
                recommendation_id=f"mood-celebration-{_day_key(reference_date)}",
                title="Celebrate your progress",
                subtitle="Recognising what works is part of progress too",
                reason=f"Your mood average over the last week was {recent:.1f}/5. Let's consolidate that streak.",
                summary="Write down three things that worked this week",
                recommendation_type=RecommendationType.REFLECTION,
                suggested_start=start_of_day + timedelta(days=1, hours=21),
                suggested_duration_minutes=15,
                confidence=0.55,
                mood_impact="Boosts motivation",
            )
        )

    return suggestions[:desired]


def build_routine_recommendations(
    reference_date: date,
    analytics: Analytics,
    upcoming: list[Event],
    desired: int,
    now: datetime,
    has_history: bool,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> list[Recommendation]:
    """Morning routine when good days start early; evening wind-down on cold start."""

    occupied = occupied_intervals(upcoming)
    suggestions = []

    morning_ratings = [
        event.mood_rating
        for category in analytics.categories
        for event in category.events
        if event.mood_rating is not None
        and event.mood_rating >= POSITIVE_RATING
        and event.start - day_start(event.start.date()) < MORNING_CUTOFF
    ]
    morning_average = float(np.mean(morning_ratings)) if morning_ratings else 0.0

    if morning_average >= POSITIVE_RATING:
        suggestions.append(
            Recommendation(
                recommendation_id=f"routine-morning-{_day_key(reference_date)}",
                title="Energising morning routine",
                subtitle="Anchor your morning to activities that already work for you",
                reason="Your best days started early. Repeating that structure sustains energy.",
                summary="Breathing and a quick plan for the day",
                recommendation_type=RecommendationType.ROUTINE,
                suggested_start=find_next_available_slot(
                    reference_date, MORNING_SLOT, occupied, now=now, lookahead_days=lookahead_days, slot_minutes=slot_minutes
                ),
                suggested_duration_minutes=25,
                confidence=0.5,
                mood_impact="Improves clarity and focus",
            )
        )

    if not analytics.categories and has_history:
        suggestions.append(
            Recommendation(
                recommendation_id=f"routine-evening-{_day_key(reference_date)}",
                title="Guided wind-down",
                subtitle="Prepare your rest with intention",
                reason="There are no recent activities to build on, but closing the day deliberately helps you sleep better.",
                summary="Gentle stretching and a short read",
                recommendation_type=RecommendationType.REST,
                suggested_start=find_next_available_slot(
                    reference_date, EVENING_SLOT, occupied, now=now, lookahead_days=lookahead_days, slot_minutes=slot_minutes
                ),
                suggested_duration_minutes=30,
                confidence=0.45,
                mood_impact="Favours restorative sleep",
            )
        )

    return suggestions[:desired]


def fallback_recommendation(reference_date: date) -> Recommendation:
    return Recommendation(
        recommendation_id=f"fallback-{_day_key(reference_date)}",
        title="Take a breather",
        summary="There is not enough information yet, try a short walk.",
        reason="When there is no recent data it is healthy to schedule a mindful pause.",
        recommendation_type=RecommendationType.WELLBEING,
        suggested_start=day_start(reference_date) + timedelta(hours=18),
        suggested_duration_minutes=20,
        confidence=0.3,
        mood_impact="Reduces stress and helps you reconnect with your body",
    )


def rank_recommendations(recommendations: list[Recommendation], limit: int) -> list[Recommendation]:
    """Keep the first occurrence of each id, best confidence first, earliest start on ties."""

    unique: dict[str, Recommendation] = {}
    for recommendation in recommendations:
        unique.setdefault(recommendation.recommendation_id, recommendation)
    ranked = sorted(unique.values(), key=lambda r: (-r.confidence, r.suggested_start))
    return ranked[:limit]


def generate_recommendations(
    reference_date: date,
    analytics: Analytics,
    upcoming: list[Event],
    desired: int,
    now: datetime,
    current_mood: Optional[int] = None,
    has_history: bool = True,
    exclude_ids: frozenset = frozenset(),
    minimum: int = 5,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> list[Recommendation]:
    """Run the three generator passes and rank the combined result.

    The mood and routine passes only run while fewer than ``minimum``
    recommendations have been produced. Ids in ``exclude_ids`` are dropped
    before the fallback check, so a fully filtered result still yields the
    fallback.
    """

    slot_options = {"lookahead_days": lookahead_days, "slot_minutes": slot_minutes}
    recommendations = build_category_recommendations(reference_date, analytics, upcoming, desired, now, **slot_options)
    logger.debug("Category pass produced %d recommendations", len(recommendations))

    if len(recommendations) < minimum:
        mood_based = build_mood_trend_recommendations(reference_date, analytics, current_mood, desired)
        logger.debug("Mood-trend pass produced %d recommendations", len(mood_based))
        recommendations.extend(mood_based)

    if len(recommendations) < minimum:
        routine = build_routine_recommendations(
            reference_date, analytics, upcoming, desired, now, has_history, **slot_options
        )
        logger.debug("Routine pass produced %d recommendations", len(routine))
        recommendations.extend(routine)

    recommendations = [r for r in recommendations if r.recommendation_id not in exclude_ids]
    if not recommendations:
        recommendations.append(fallback_recommendation(reference_date))

    return rank_recommendations(recommendations, desired)
