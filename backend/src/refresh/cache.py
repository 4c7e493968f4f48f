"""
Freshness Cache - per-source current event and schedule snapshot with TTL rules.

Entries are replaced wholesale on every write, so a concurrent reader always
gets the last committed entry and never a half-updated one.
"""

import logging
from collections import OrderedDict, defaultdict
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from leagues.models import Event, EventStatus, ScheduleSnapshot
from utils.dates import local_date_str, utc_now

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULE_MAX_AGE = 30 * 60
FINAL_EVENT_TTL = 60 * 60
LIVE_EVENT_TTL = 5 * 60
SCHEDULED_EVENT_TTL = 5 * 60
ICON_CACHE_CAPACITY = 50

EVENT_CHANGED = "event-changed"
STATE_RESET = "state-reset"


@dataclass(frozen=True)
class SourceCacheEntry:
    current_event: Optional[Event] = None
    schedule: Optional[ScheduleSnapshot] = None
    schedule_fetched_at: Optional[datetime] = None
    last_cycle_completed_at: Optional[datetime] = None


_EMPTY = SourceCacheEntry()


class FreshnessCache:
    """Per-source store owned by the orchestrator; observers get change notifications."""

    def __init__(self):
        self._entries: Dict[str, SourceCacheEntry] = {}
        self._listeners: Dict[str, List[Callable[[Any], None]]] = defaultdict(list)

    def get_entry(self, source_key: str) -> SourceCacheEntry:
        return self._entries.get(source_key, _EMPTY)

    def _put(self, source_key: str, **changes):
        self._entries[source_key] = replace(self.get_entry(source_key), **changes)

    # --- Current event ---

    def get_current_event(self, source_key: str) -> Optional[Event]:
        return self.get_entry(source_key).current_event

    def set_current_event(self, source_key: str, event: Optional[Event]):
        """Overwrite the current event; listeners hear about it only when it differs."""
        previous = self.get_current_event(source_key)
        self._put(source_key, current_event=event)
        if event != previous:
            self._notify(EVENT_CHANGED, {
                "source_key": source_key,
                "event": event,
                "previous": previous,
            })

    # --- Schedule ---

    def get_schedule(self, source_key: str) -> Optional[ScheduleSnapshot]:
        return self.get_entry(source_key).schedule

    def set_schedule(self, source_key: str, schedule: ScheduleSnapshot, now: Optional[datetime] = None):
        self._put(source_key, schedule=schedule, schedule_fetched_at=now or utc_now())

    def is_schedule_fresh(
        self,
        source_key: str,
        max_age: float = DEFAULT_SCHEDULE_MAX_AGE,
        now: Optional[datetime] = None,
    ) -> bool:
        entry = self.get_entry(source_key)
        if entry.schedule is None or entry.schedule_fetched_at is None:
            return False
        age = ((now or utc_now()) - entry.schedule_fetched_at).total_seconds()
        return age < max_age

    # --- Validity ---

    def mark_cycle_completed(self, source_key: str, now: Optional[datetime] = None):
        self._put(source_key, last_cycle_completed_at=now or utc_now())

    def is_event_cache_valid(
        self,
        source_key: str,
        event: Optional[Event],
        last_cycle_completed_at: Optional[datetime],
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Whether a cached event can be reused without refetching the schedule.

        Never valid across a local calendar day boundary. Otherwise finals are
        trusted for an hour; live and scheduled games (which can be moved or
        postponed) for five minutes. Age counts from the last completed cycle
        that selected the event from the schedule, not from cycles reusing it.
        """
        if event is None or event.start_time is None:
            return False
        now = now or utc_now()
        if local_date_str(event.start_time) != local_date_str(now):
            return False
        if last_cycle_completed_at is None:
            return False

        age = (now - last_cycle_completed_at).total_seconds()
        if event.status == EventStatus.FINAL:
            return age < FINAL_EVENT_TTL
        if event.status == EventStatus.LIVE:
            return age < LIVE_EVENT_TTL
        return age < SCHEDULED_EVENT_TTL

    # --- Reset ---

    def reset(self, source_key: Optional[str] = None):
        """Forget one source, or everything when no key is given."""
        if source_key is not None:
            self._entries.pop(source_key, None)
            return
        self._entries.clear()
        self._notify(STATE_RESET, None)

    # --- Listeners ---

    def add_listener(self, event_name: str, callback: Callable[[Any], None]):
        self._listeners[event_name].append(callback)

    def remove_listener(self, event_name: str, callback: Callable[[Any], None]):
        listeners = self._listeners.get(event_name)
        if listeners and callback in listeners:
            listeners.remove(callback)

    def _notify(self, event_name: str, data: Any):
        for callback in list(self._listeners.get(event_name, ())):
            try:
                callback(data)
            except Exception as e:
                logger.error("Cache listener failed", extra={
                    "event": event_name,
                    "error": str(e)
                }, exc_info=True)


class IconCache:
    """Team icon paths; evicts the oldest insertion past capacity (FIFO, not LRU)."""

    def __init__(self, capacity: int = ICON_CACHE_CAPACITY):
        self.capacity = capacity
        self._items: "OrderedDict[str, str]" = OrderedDict()

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, path: str):
        self._items[key] = path
        while len(self._items) > self.capacity:
            self._items.popitem(last=False)

    def clear(self):
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: str) -> bool:
        return key in self._items
