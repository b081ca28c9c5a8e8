"""Per-user, time-windowed record of recently used recommendation ids."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, Optional

from calendar_engine.schema import utcnow


class RecentSuggestionStore:
    """Remembers which recommendation ids a user acted on inside ``window``.

    Entries older than the window are evicted on every read and write, so
    the store never grows past what the window holds.
    """

    def __init__(self, window: timedelta = timedelta(hours=48), clock: Callable[[], datetime] = utcnow) -> None:
        self.window = window
        self.clock = clock
        self._entries: dict[str, dict[str, datetime]] = defaultdict(dict)

    def _evict(self, user_id: str) -> None:
        cutoff = self.clock() - self.window
        entries = self._entries.get(user_id)
        if entries is None:
            return
        for recommendation_id in [rid for rid, used_at in entries.items() if used_at <= cutoff]:
            del entries[recommendation_id]
        if not entries:
            del self._entries[user_id]

    def mark(self, user_id: str, recommendation_id: str, used_at: Optional[datetime] = None) -> None:
        self._entries[user_id][recommendation_id] = used_at or self.clock()
        self._evict(user_id)

    def recent_ids(self, user_id: str) -> set[str]:
        self._evict(user_id)
        return set(self._entries.get(user_id, {}))
