"""
Local-clock date helpers.

Day boundaries (which games are "today", when the midnight rollover fires)
always follow the machine's local clock, never UTC.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

MIN_MIDNIGHT_DELAY = 60


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_date_str(instant: datetime) -> str:
    """YYYY-MM-DD of an instant on the local calendar."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone().strftime("%Y-%m-%d")


def next_local_midnight(now: Optional[datetime] = None) -> datetime:
    now = (now or utc_now()).astimezone()
    tomorrow = now.date() + timedelta(days=1)
    return datetime(tomorrow.year, tomorrow.month, tomorrow.day).astimezone()


def seconds_until_midnight(now: Optional[datetime] = None) -> float:
    """Seconds until the next local midnight, never less than a minute."""
    now = now or utc_now()
    remaining = (next_local_midnight(now) - now).total_seconds()
    return max(float(MIN_MIDNIGHT_DELAY), remaining)


def parse_iso_datetime(raw) -> Optional[datetime]:
    """Parse ESPN-style ISO timestamps ("2026-02-07T19:05Z"). None if unparseable."""
    if not raw or not isinstance(raw, str):
        return None
    try:
        value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def local_day_start(now: Optional[datetime] = None) -> datetime:
    """Local midnight at the start of now's calendar day."""
    local = (now or utc_now()).astimezone()
    return datetime(local.year, local.month, local.day).astimezone()
