"""MLB: live state is inning, half, and outs."""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from leagues.base import League
from leagues.models import Event

OUTS_PATTERN = re.compile(r"(\d)\s*Out")


@dataclass(frozen=True)
class BaseballLive:
    inning: int
    inning_state: str  # e.g. "Top 5th"
    outs: int = 0


class BaseballLeague(League):
    key = "mlb"
    name = "MLB"
    api_path = "baseball/mlb"
    roster_file = "mlb-teams.json"

    def parse_live_detail(self, competition: Dict[str, Any], status: Dict[str, Any]) -> Optional[BaseballLive]:
        status_type = status.get("type") or {}
        if status_type.get("state") != "in":
            return None
        detail = status_type.get("detail") or ""
        outs_match = OUTS_PATTERN.search(detail)
        return BaseballLive(
            inning=status.get("period") or 1,
            inning_state=detail,
            outs=int(outs_match.group(1)) if outs_match else 0,
        )

    def sample_live_detail(self) -> BaseballLive:
        return BaseballLive(inning=5, inning_state="Top 5th", outs=1)

    def format_live_detail(self, event: Event) -> str:
        live = event.live_detail
        if not isinstance(live, BaseballLive):
            return ""
        half = "Top" if "Top" in live.inning_state else "Bot"
        outs = min(live.outs, 3)
        dots = "●" * outs + "○" * (3 - outs)
        return f"{half} {live.inning}\n{dots}"
