"""NHL: live state is period and clock; intermissions slow refreshes down."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from leagues.base import ONE_MINUTE, League
from leagues.models import Event

PERIOD_NAMES = ("1st", "2nd", "3rd")


@dataclass(frozen=True)
class HockeyLive:
    period: int
    clock: str = ""
    is_intermission: bool = False


class HockeyLeague(League):
    key = "nhl"
    name = "NHL"
    api_path = "hockey/nhl"
    roster_file = "nhl-teams.json"

    def parse_live_detail(self, competition: Dict[str, Any], status: Dict[str, Any]) -> Optional[HockeyLive]:
        status_type = status.get("type") or {}
        if status_type.get("state") != "in":
            return None
        detail = status_type.get("detail") or ""
        return HockeyLive(
            period=status.get("period") or 1,
            clock=status.get("displayClock") or "",
            is_intermission="intermission" in detail.lower(),
        )

    def pause_delay(self, event: Event) -> float:
        live = event.live_detail
        if isinstance(live, HockeyLive) and live.is_intermission:
            return 2 * ONE_MINUTE
        return ONE_MINUTE

    def sample_live_detail(self) -> HockeyLive:
        return HockeyLive(period=2, clock="12:33")

    def format_live_detail(self, event: Event) -> str:
        live = event.live_detail
        if not isinstance(live, HockeyLive):
            return ""
        if live.is_intermission:
            return "Intermission"
        if 1 <= live.period <= 3:
            period = PERIOD_NAMES[live.period - 1]
        else:
            period = f"OT{live.period - 3}"
        return f"{period} {live.clock}" if live.clock else period
