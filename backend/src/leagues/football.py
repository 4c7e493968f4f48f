"""NFL: live state is quarter and clock; halftime slows refreshes down."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from leagues.base import ONE_MINUTE, League
from leagues.models import Event

QUARTER_NAMES = ("1st", "2nd", "3rd", "4th")


@dataclass(frozen=True)
class FootballLive:
    quarter: int
    clock: str = ""
    is_halftime: bool = False


class FootballLeague(League):
    key = "nfl"
    name = "NFL"
    api_path = "football/nfl"
    roster_file = "nfl-teams.json"

    def parse_live_detail(self, competition: Dict[str, Any], status: Dict[str, Any]) -> Optional[FootballLive]:
        status_type = status.get("type") or {}
        if status_type.get("state") != "in":
            return None
        return FootballLive(
            quarter=status.get("period") or 1,
            clock=status.get("displayClock") or "",
            is_halftime="Halftime" in (status_type.get("detail") or ""),
        )

    def pause_delay(self, event: Event) -> float:
        live = event.live_detail
        if isinstance(live, FootballLive) and live.is_halftime:
            return 5 * ONE_MINUTE
        return ONE_MINUTE

    def sample_live_detail(self) -> FootballLive:
        return FootballLive(quarter=3, clock="7:42")

    def format_live_detail(self, event: Event) -> str:
        live = event.live_detail
        if not isinstance(live, FootballLive):
            return ""
        if live.is_halftime:
            return "Halftime"
        quarter = QUARTER_NAMES[live.quarter - 1] if 1 <= live.quarter <= 4 else "OT"
        return f"{quarter} {live.clock}".strip()
