"""Catalog-based self-care suggestions filtered by the recent-suggestion store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

import numpy as np

from calendar_engine.errors import ValidationError
from calendar_engine.recent import RecentSuggestionStore
from calendar_engine.schema import Event

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 50.0
MAX_SELF_CARE_COUNT = 10


class SelfCareType(str, Enum):
    PHYSICAL = "physical"
    MENTAL = "mental"
    SOCIAL = "social"
    CREATIVE = "creative"
    REST = "rest"


class SelfCareAction(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED_NOW = "completed_now"
    DISMISSED = "dismissed"


@dataclass
class SelfCareSuggestion:
    """Short self-care activity; ``confidence_score`` is a percentage in [0, 100]."""

    suggestion_id: str
    care_type: SelfCareType
    title: str
    description: str
    duration_minutes: int
    reason: str
    confidence_score: int
    historical_mood_impact: Optional[int] = None
    completion_rate: Optional[int] = None


def _item(suggestion_id, care_type, title, description, minutes, reason, score):
    return SelfCareSuggestion(suggestion_id, care_type, title, description, minutes, reason, score)


MORNING = [
    _item("morning-walk", SelfCareType.PHYSICAL, "Walk for 20 minutes", "Walk outdoors to start the day with energy", 20, "Morning walks wake up your metabolism and lift your mood", 85),
    _item("morning-stretch", SelfCareType.PHYSICAL, "Morning stretches", "Loosen up neck, back and legs", 10, "Stretching early releases the stiffness of the night", 80),
    _item("morning-coffee-mindful", SelfCareType.MENTAL, "Mindful breakfast", "Eat or drink your coffee without screens", 15, "A calm start sets the tone for the rest of the day", 79),
    _item("morning-planning", SelfCareType.MENTAL, "Plan your day", "Write down the three things that matter most today", 10, "A short plan reduces the feeling of overwhelm", 77),
    _item("morning-music", SelfCareType.CREATIVE, "Energising music", "Put on a playlist that lifts you", 15, "Upbeat music boosts energy and motivation", 75),
]

AFTERNOON = [
    _item("afternoon-break", SelfCareType.REST, "Take a 10 minute break", "Step away from what you are doing", 10, "Short breaks keep focus from fading in the afternoon", 78),
    _item("afternoon-walk", SelfCareType.PHYSICAL, "Walk after lunch", "A gentle walk to help digestion", 15, "Moving after eating avoids the afternoon slump", 75),
    _item("afternoon-hydrate", SelfCareType.PHYSICAL, "Hydration pause", "Drink a full glass of water", 5, "Mild dehydration lowers concentration", 72),
    _item("afternoon-snack", SelfCareType.PHYSICAL, "Healthy snack", "Fruit, nuts or yoghurt", 10, "Steady energy helps you finish the day well", 74),
    _item("afternoon-eyes", SelfCareType.REST, "Rest your eyes", "Look into the distance and blink slowly", 5, "Your eyes need a break from the screen", 76),
]

EVENING = [
    _item("evening-meditation", SelfCareType.MENTAL, "Evening meditation", "A short guided meditation before bed", 10, "Meditating at night improves sleep quality", 82),
    _item("evening-journal", SelfCareType.CREATIVE, "Evening journal", "Write about how your day went", 15, "Writing helps you close the day and process emotions", 76),
    _item("evening-reading", SelfCareType.REST, "Relaxing reading", "Read something light, away from screens", 20, "Reading calms the mind before sleeping", 80),
    _item("evening-tea", SelfCareType.REST, "Hot tea and quiet", "Enjoy an herbal tea in silence", 15, "A warm ritual signals your body it is time to rest", 78),
    _item("evening-stretch", SelfCareType.PHYSICAL, "Gentle stretches", "Slow stretches to release tension", 10, "Releasing tension helps you fall asleep", 74),
    _item("evening-gratitude", SelfCareType.MENTAL, "Gratitude list", "Write three things you are grateful for", 5, "Gratitude improves mood and perspective", 77),
]

MONDAY = [
    _item("monday-energy", SelfCareType.PHYSICAL, "Energising exercise", "A quick workout to kick off the week", 15, "Starting the week active raises your energy", 83),
]

FRIDAY = [
    _item("friday-social", SelfCareType.SOCIAL, "Connect with friends", "Plan something with people you like", 20, "Closing the week with company recharges you", 80),
]

SUNDAY = [
    _item("sunday-rest", SelfCareType.REST, "Time for yourself", "An unhurried hour doing what you enjoy", 60, "Rest before the new week prevents burnout", 85),
]

LOW_MOOD = [
    _item("lowmood-breathe", SelfCareType.MENTAL, "4-7-8 breathing", "A breathing technique to calm anxiety", 5, "This technique quickly reduces stress and anxiety", 90),
    _item("lowmood-call", SelfCareType.SOCIAL, "Talk to someone", "Call someone you trust", 15, "When you feel down, talking helps you process emotions", 88),
]

GENERIC = [
    _item("generic-walk", SelfCareType.PHYSICAL, "Walk for 15 minutes", "A short walk to clear your head", 15, "Movement reduces stress and improves mood", 80),
    _item("generic-breathe", SelfCareType.MENTAL, "Mindful breathing", "Deep breathing exercises", 5, "Mindful breathing lowers anxiety quickly", 85),
    _item("generic-stretch", SelfCareType.PHYSICAL, "Stretching", "Stretch neck, shoulders and back", 10, "Prevents aches from sitting too long", 75),
    _item("generic-tea", SelfCareType.REST, "Have a tea", "Prepare your favourite drink calmly", 10, "A mindful pause is comforting", 70),
    _item("generic-music", SelfCareType.CREATIVE, "Listen to music", "Three songs you like", 12, "Music lifts your mood naturally", 72),
    _item("generic-call", SelfCareType.SOCIAL, "Call a loved one", "A short chat with someone you care about", 15, "Social connection is key to wellbeing", 78),
    _item("generic-journal", SelfCareType.CREATIVE, "Write in your journal", "Write down your thoughts and feelings", 10, "Writing helps you process emotions", 73),
    _item("generic-nap", SelfCareType.REST, "Short nap", "Twenty minutes of restorative rest", 20, "A short nap recharges your energy", 68),
    _item("generic-nature", SelfCareType.PHYSICAL, "Connect with nature", "Go outside, even if only to the balcony", 10, "Contact with nature lowers cortisol", 76),
    _item("generic-screens", SelfCareType.REST, "Screen break", "Put every device away for a while", 15, "Your eyes and mind need a digital break", 74),
]


def contextual_pool(now: datetime, current_mood: Optional[int]) -> list[SelfCareSuggestion]:
    """Catalog entries for the time of day, weekday and mood."""

    if 6 <= now.hour < 12:
        pool = list(MORNING)
    elif 12 <= now.hour < 18:
        pool = list(AFTERNOON)
    else:
        pool = list(EVENING)

    weekday = now.weekday()
    if weekday == 0:
        pool.extend(MONDAY)
    elif weekday == 4:
        pool.extend(FRIDAY)
    elif weekday == 6:
        pool.extend(SUNDAY)

    if current_mood is not None and current_mood <= 2:
        pool.extend(LOW_MOOD)
    return [replace(item) for item in pool]


def score_suggestion(suggestion: SelfCareSuggestion, events: list[Event], now: datetime) -> SelfCareSuggestion:
    """Score from past events whose title shares the suggestion's first word.

    Score = mood impact * 0.5 + completion rate * 0.3 + recency * 0.2, each on
    a 0-100 scale and neutral (50) without matching history. Recency favours
    activities last done two to seven days ago.
    """

    keyword = suggestion.title.split(" ")[0].lower()
    similar = [event for event in events if keyword in event.title.lower()]

    mood_impact = completion = recency = NEUTRAL_SCORE
    if similar:
        ratings = [event.mood_rating for event in similar if event.mood_rating is not None]
        if ratings:
            mood_impact = float(np.mean(ratings)) * 20
            suggestion.historical_mood_impact = int(mood_impact)

        completed = sum(1 for event in similar if event.mood_rating is not None or event.end < now)
        completion = completed / len(similar) * 100
        suggestion.completion_rate = int(completion)

        days_since = (now - max(event.end for event in similar)).total_seconds() / 86400
        if 2 <= days_since <= 7:
            recency = 80.0
        elif days_since < 2:
            recency = 30.0

    suggestion.confidence_score = max(0, min(100, int(mood_impact * 0.5 + completion * 0.3 + recency * 0.2)))
    return suggestion


def generate_self_care(
    events: list[Event],
    now: datetime,
    current_mood: Optional[int] = None,
    count: int = 5,
    recent_ids: frozenset = frozenset(),
) -> list[SelfCareSuggestion]:
    """Rank the contextual pool, skip recently used ids and fall back to the generic catalog."""

    pool = contextual_pool(now, current_mood)
    catalog_score = {item.suggestion_id: item.confidence_score for item in pool}
    scored = [score_suggestion(item, events, now) for item in pool]
    ranked = sorted(scored, key=lambda s: (-s.confidence_score, -catalog_score[s.suggestion_id]))
    available = [s for s in ranked if s.suggestion_id not in recent_ids]

    if not available:
        logger.debug("Every contextual self-care suggestion was used recently, using the generic catalog")
        available = sorted(
            (replace(item) for item in GENERIC if item.suggestion_id not in recent_ids),
            key=lambda s: -s.confidence_score,
        )

    return available[:count]


def get_self_care_suggestions(
    event_store,
    recent_store: RecentSuggestionStore,
    user_id: str,
    now: datetime,
    current_mood: Optional[int] = None,
    count: int = 5,
    lookback_days: int = 30,
) -> list[SelfCareSuggestion]:
    if not 1 <= count <= MAX_SELF_CARE_COUNT:
        raise ValidationError(f"count must be between 1 and {MAX_SELF_CARE_COUNT}, got {count}")

    events = event_store.fetch_events_in_range(user_id, now - timedelta(days=lookback_days), now)
    suggestions = generate_self_care(
        events, now, current_mood=current_mood, count=count, recent_ids=frozenset(recent_store.recent_ids(user_id))
    )
    logger.info("Generated %d self-care suggestions for user %s", len(suggestions), user_id)
    return suggestions


def record_self_care_action(
    recent_store: RecentSuggestionStore,
    user_id: str,
    suggestion_id: str,
    action,
    used_at: Optional[datetime] = None,
) -> SelfCareAction:
    """Remember that the user acted on a suggestion so it is not offered again inside the window."""

    try:
        parsed = SelfCareAction(action)
    except ValueError as exc:
        raise ValidationError(f"Unknown self-care action {action!r}") from exc
    if not suggestion_id or not suggestion_id.strip():
        raise ValidationError("suggestion_id is required")

    recent_store.mark(user_id, suggestion_id.strip(), used_at)
    logger.info("Self-care feedback: user=%s suggestion=%s action=%s", user_id, suggestion_id.strip(), parsed.value)
    return parsed
