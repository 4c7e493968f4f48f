"""
Refresh planning - how long until a source needs polling again.

Live games poll fast (or slower during a league's known breaks), finals back
off until midnight, and upcoming games tighten as first pitch approaches.
"""

from datetime import datetime
from typing import Callable, Iterable, Optional

from leagues.models import Event, EventStatus
from utils.dates import seconds_until_midnight, utc_now

ONE_MINUTE = 60
FIVE_MINUTES = 5 * ONE_MINUTE
THIRTY_MINUTES = 30 * ONE_MINUTE
ONE_HOUR = 60 * ONE_MINUTE


def delay_for(
    status: Optional[EventStatus],
    event: Optional[Event],
    pause_delay: Optional[Callable[[Event], float]] = None,
    live_refresh_override: Optional[float] = None,
    now: Optional[datetime] = None,
) -> float:
    """
    Seconds until the next refresh for one source.

    Args:
        status: The event's status (None when no event is selected)
        event: The selected event
        pause_delay: League hook giving the live delay (longer during breaks)
        live_refresh_override: User-configured live interval, wins over pause_delay
        now: Current time (defaults to now, UTC)
    """
    now = now or utc_now()

    if status is None or event is None:
        return seconds_until_midnight(now)

    if status == EventStatus.LIVE:
        if live_refresh_override:
            return float(live_refresh_override)
        if pause_delay is not None:
            return float(pause_delay(event))
        return float(ONE_MINUTE)

    if status == EventStatus.FINAL:
        return float(min(THIRTY_MINUTES, seconds_until_midnight(now)))

    if status == EventStatus.SCHEDULED:
        if event.start_time is not None:
            until_start = (event.start_time - now).total_seconds()
            if until_start < FIVE_MINUTES:
                return float(ONE_MINUTE)
            if until_start < ONE_HOUR:
                return float(FIVE_MINUTES)
        return float(ONE_HOUR)

    return float(ONE_HOUR)


def aggregate(delays: Iterable[float], now: Optional[datetime] = None) -> float:
    """Smallest delay across sources; until local midnight when there are none."""
    delays = list(delays)
    if not delays:
        return seconds_until_midnight(now or utc_now())
    return min(delays)
