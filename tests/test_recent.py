from datetime import datetime, timedelta

from calendar_engine.recent import RecentSuggestionStore


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_ids_expire_after_window():
    clock = FakeClock(datetime(2025, 3, 10, 8, 0))
    store = RecentSuggestionStore(clock=clock)

    store.mark("u1", "fallback-20250310")
    clock.now += timedelta(hours=47)
    assert store.recent_ids("u1") == {"fallback-20250310"}

    clock.now += timedelta(hours=1)
    assert store.recent_ids("u1") == set()


def test_users_are_isolated():
    store = RecentSuggestionStore(clock=FakeClock(datetime(2025, 3, 10, 8, 0)))
    store.mark("u1", "a")
    store.mark("u2", "b")
    assert store.recent_ids("u1") == {"a"}
    assert store.recent_ids("u2") == {"b"}
    assert store.recent_ids("u3") == set()


def test_stale_marks_are_evicted_on_write():
    now = datetime(2025, 3, 10, 8, 0)
    store = RecentSuggestionStore(window=timedelta(hours=1), clock=FakeClock(now))
    store.mark("u1", "old", now - timedelta(hours=2))
    store.mark("u1", "new", now)
    assert store.recent_ids("u1") == {"new"}
