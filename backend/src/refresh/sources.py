"""
Tracked sources and per-cycle results.

A source is one (league, team) pair; its source_key is the league key, so at
most one team is tracked per league.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from leagues.base import League
from leagues.models import Event


@dataclass(frozen=True)
class TrackedSource:
    source_key: str
    league: League
    team_id: Optional[int]
    team_code: str = ""


@dataclass(frozen=True)
class SourceResult:
    """Outcome of one source's update within a cycle."""

    source_key: str
    league: League
    team_id: Optional[int]
    event: Optional[Event] = None
    error: bool = False
    is_offseason: bool = False
    # Earliest known future event, set only in the offseason
    next_known_date: Optional[datetime] = None

    def to_dict(self, timezone_name: str = "") -> Dict[str, Any]:
        team = self.league.get_team(self.team_id) if self.team_id is not None else None
        return {
            "source_key": self.source_key,
            "league": self.league.key,
            "team_id": self.team_id,
            "team": team,
            "event": self.event.to_dict() if self.event else None,
            "display": self.league.format_display(self.event, timezone_name) if self.event else None,
            "error": self.error,
            "is_offseason": self.is_offseason,
            "next_known_date": self.next_known_date.isoformat() if self.next_known_date else None,
        }
