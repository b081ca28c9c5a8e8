"""Bounded confidence scoring for category recommendations."""

from __future__ import annotations

from typing import Optional

from calendar_engine.schema import CategorySnapshot


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def category_confidence(snapshot: CategorySnapshot, recent_mood_average: Optional[float], return_components: bool = False):
    """Score how strongly history supports repeating a category, in [0.2, 0.95]."""

    base = _clamp(snapshot.mood_average / 5.0, 0.3, 0.95) if snapshot.mood_average > 0 else 0.4
    participation_bonus = min(0.2, len(snapshot.events) * 0.02)
    mood_bonus = _clamp((recent_mood_average - 3) * 0.05, -0.1, 0.1) if recent_mood_average is not None else 0.0

    score = round(_clamp(base + participation_bonus + mood_bonus, 0.2, 0.95), 2)

    if return_components:
        return {
            "score": score,
            "base": base,
            "participation_bonus": participation_bonus,
            "mood_bonus": mood_bonus,
        }

    return score
