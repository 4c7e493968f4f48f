"""
Common event shapes shared by every league.

Events are immutable: a refetch produces a new Event, never an in-place update.
"""

from dataclasses import asdict, dataclass, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from utils.dates import local_date_str


class EventStatus(Enum):
    """Canonical event status, independent of the provider's vocabulary."""
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINAL = "final"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TeamSide:
    team_id: int
    abbreviation: str
    score: int = 0


@dataclass(frozen=True)
class Event:
    """One sporting contest."""

    id: str
    start_time: datetime
    home: TeamSide
    away: TeamSide
    status: EventStatus
    status_detail: str = ""
    venue: str = ""
    # League-specific live state (inning, quarter, period...); only meaningful when live
    live_detail: Optional[Any] = None
    preferred_team_id: Optional[int] = None

    @property
    def local_date(self) -> str:
        return local_date_str(self.start_time)

    def is_home(self, team_id: Optional[int] = None) -> bool:
        team_id = self.preferred_team_id if team_id is None else team_id
        return self.home.team_id == team_id

    def opponent(self, team_id: Optional[int] = None) -> TeamSide:
        return self.away if self.is_home(team_id) else self.home

    def to_dict(self) -> Dict[str, Any]:
        live = self.live_detail
        if is_dataclass(live):
            live = asdict(live)
        return {
            "id": self.id,
            "start_time": self.start_time.isoformat(),
            "home": asdict(self.home),
            "away": asdict(self.away),
            "status": self.status.value,
            "status_detail": self.status_detail,
            "venue": self.venue,
            "live_detail": live,
            "preferred_team_id": self.preferred_team_id,
        }


@dataclass(frozen=True)
class ScheduleDay:
    date: str  # YYYY-MM-DD, local calendar
    events: Tuple[Event, ...] = ()


@dataclass(frozen=True)
class ScheduleSnapshot:
    """Events in the look-ahead window grouped by local day, ascending."""

    days: Tuple[ScheduleDay, ...] = ()
    # Earliest future event even if beyond the window (offseason countdown)
    next_known_event_date: Optional[datetime] = None

    def has_events(self) -> bool:
        return any(day.events for day in self.days)

    def day(self, date_str: str) -> Optional[ScheduleDay]:
        for day in self.days:
            if day.date == date_str:
                return day
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "days": [
                {"date": day.date, "events": [event.to_dict() for event in day.events]}
                for day in self.days
            ],
            "next_known_event_date": (
                self.next_known_event_date.isoformat() if self.next_known_event_date else None
            ),
        }
