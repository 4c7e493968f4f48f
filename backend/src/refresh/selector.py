"""
Relevant-event selection.

Given a team's schedule, pick the one event worth showing right now: a game in
progress beats everything, a just-finished game is shown for a while, then
today's upcoming game, then the next future one.
"""

from datetime import datetime
from typing import Optional

from leagues.models import Event, EventStatus, ScheduleSnapshot
from utils.dates import local_date_str

RECENT_FINAL_WINDOW = 5 * 60 * 60


def select_relevant(schedule: Optional[ScheduleSnapshot], today_str: str, now: datetime) -> Optional[Event]:
    """
    Run the selection passes in priority order; the first match wins.

    1. Live anywhere in the schedule (a game may be filed under another day).
    2. Final in today's bucket, started today (local) less than 5 hours ago.
    3. Scheduled in today's bucket.
    4. Scheduled on any other day, in schedule order.

    Returns None for an off-day or offseason.
    """
    if not schedule or not schedule.days:
        return None

    for day in schedule.days:
        for event in day.events:
            if event.status == EventStatus.LIVE:
                return event

    today = [day for day in schedule.days if day.date == today_str]

    for day in today:
        for event in day.events:
            if event.status != EventStatus.FINAL:
                continue
            # Bucket and start time must both say today; a mis-filed final must not surface
            if local_date_str(event.start_time) != today_str:
                continue
            elapsed = (now - event.start_time).total_seconds()
            if 0 < elapsed < RECENT_FINAL_WINDOW:
                return event

    for day in today:
        for event in day.events:
            if event.status == EventStatus.SCHEDULED:
                return event

    for day in schedule.days:
        if day.date == today_str:
            continue
        for event in day.events:
            if event.status == EventStatus.SCHEDULED:
                return event

    return None
