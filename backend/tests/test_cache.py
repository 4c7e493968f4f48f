from datetime import timedelta

from conftest import local_noon, make_event
from leagues.models import EventStatus, ScheduleSnapshot
from refresh.cache import EVENT_CHANGED, STATE_RESET, FreshnessCache, IconCache
from utils.dates import local_day_start


def test_event_from_previous_day_is_never_valid():
    cache = FreshnessCache()
    now = local_day_start(local_noon()) + timedelta(minutes=1)
    # Started late yesterday, cycle completed seconds ago
    event = make_event(EventStatus.FINAL, start_time=now - timedelta(minutes=30))
    assert not cache.is_event_cache_valid("mlb", event, now - timedelta(seconds=5), now)


def test_final_event_valid_for_an_hour():
    cache = FreshnessCache()
    now = local_noon()
    event = make_event(EventStatus.FINAL, start_time=now - timedelta(hours=3))
    assert cache.is_event_cache_valid("mlb", event, now - timedelta(minutes=59), now)
    assert not cache.is_event_cache_valid("mlb", event, now - timedelta(minutes=61), now)


def test_live_and_scheduled_events_valid_for_five_minutes():
    cache = FreshnessCache()
    now = local_noon()
    for status in (EventStatus.LIVE, EventStatus.SCHEDULED):
        event = make_event(status, start_time=now + timedelta(hours=1))
        assert cache.is_event_cache_valid("mlb", event, now - timedelta(minutes=4), now)
        assert not cache.is_event_cache_valid("mlb", event, now - timedelta(minutes=6), now)


def test_event_without_completed_cycle_is_invalid():
    cache = FreshnessCache()
    now = local_noon()
    assert not cache.is_event_cache_valid("mlb", make_event(), None, now)
    assert not cache.is_event_cache_valid("mlb", None, now, now)


def test_schedule_freshness():
    cache = FreshnessCache()
    now = local_noon()
    assert not cache.is_schedule_fresh("mlb", 1800, now)

    cache.set_schedule("mlb", ScheduleSnapshot(), now - timedelta(minutes=10))
    assert cache.is_schedule_fresh("mlb", 1800, now)
    assert not cache.is_schedule_fresh("mlb", 1800, now + timedelta(minutes=25))


def test_writes_replace_entries_without_mutating_old_ones():
    cache = FreshnessCache()
    before = cache.get_entry("mlb")
    cache.set_current_event("mlb", make_event())
    after = cache.get_entry("mlb")
    assert before.current_event is None
    assert after.current_event is not None
    assert before is not after


def test_change_notification_only_when_event_differs():
    cache = FreshnessCache()
    changes = []
    cache.add_listener(EVENT_CHANGED, changes.append)

    event = make_event(EventStatus.LIVE, home_score=1)
    cache.set_current_event("mlb", event)
    cache.set_current_event("mlb", make_event(EventStatus.LIVE, home_score=1))
    cache.set_current_event("mlb", make_event(EventStatus.LIVE, home_score=2))

    assert len(changes) == 2
    assert changes[1]["previous"] == event
    assert changes[1]["event"].home.score == 2


def test_listener_errors_do_not_break_writes():
    cache = FreshnessCache()

    def broken(data):
        raise RuntimeError("boom")

    cache.add_listener(EVENT_CHANGED, broken)
    cache.set_current_event("mlb", make_event())
    assert cache.get_current_event("mlb") is not None

    cache.remove_listener(EVENT_CHANGED, broken)
    cache.set_current_event("mlb", None)


def test_reset_clears_everything_and_notifies():
    cache = FreshnessCache()
    resets = []
    cache.add_listener(STATE_RESET, resets.append)
    cache.set_current_event("mlb", make_event())
    cache.set_current_event("nhl", make_event())

    cache.reset("nhl")
    assert cache.get_current_event("nhl") is None
    assert cache.get_current_event("mlb") is not None
    assert resets == []

    cache.reset()
    assert cache.get_current_event("mlb") is None
    assert resets == [None]


def test_icon_cache_evicts_oldest_insertion():
    icons = IconCache(capacity=2)
    icons.set("a", "/a.png")
    icons.set("b", "/b.png")
    icons.get("a")
    icons.set("c", "/c.png")

    # FIFO: reading "a" does not protect it
    assert "a" not in icons
    assert icons.get("b") == "/b.png"
    assert len(icons) == 2
