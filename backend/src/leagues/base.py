"""
League capability shared by every supported league.

Handles ESPN URL construction, payload parsing into the common Event shape,
and per-league refresh/display hooks. Subclasses override the live-state
hooks (parse_live_detail, pause_delay, format_live_detail, sample_live_detail) only.
"""

import json
import logging
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from leagues.models import Event, EventStatus, ScheduleDay, ScheduleSnapshot, TeamSide
from utils.dates import local_date_str, parse_iso_datetime, utc_now

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
ESPN_SITE_API_PATH = "/apis/site/v2/sports"
LOGO_URL_TEMPLATE = "https://a.espncdn.com/i/teamlogos/{league}/500/{code}.png"

ONE_MINUTE = 60


class ParseError(ValueError):
    """Raised when a provider payload can't be turned into an Event."""
    pass


class League:
    """Base class for a league; subclasses set key/name/api_path/roster_file."""

    key = ""
    name = ""
    api_path = ""
    roster_file = ""

    def __init__(self, base_url: str = "https://site.api.espn.com"):
        self.base_url = base_url.rstrip("/")
        self._teams = self._load_teams()

    def _load_teams(self) -> List[Dict[str, Any]]:
        path = DATA_DIR / self.roster_file
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)

    # --- Roster ---

    @property
    def teams(self) -> List[Dict[str, Any]]:
        return list(self._teams)

    def get_team(self, team_id: int) -> Optional[Dict[str, Any]]:
        return next((t for t in self._teams if t["id"] == team_id), None)

    def team_id_for_code(self, code: Optional[str]) -> Optional[int]:
        if not code:
            return None
        code = code.strip().lower()
        team = next((t for t in self._teams if t["code"] == code), None)
        return team["id"] if team else None

    def team_logo_url(self, team_id: int) -> Optional[str]:
        team = self.get_team(team_id)
        if not team:
            return None
        return LOGO_URL_TEMPLATE.format(league=self.key, code=team["code"])

    # --- URLs ---

    def build_schedule_url(self, team_id: int) -> str:
        return f"{self.base_url}{ESPN_SITE_API_PATH}/{self.api_path}/teams/{team_id}/schedule"

    def build_summary_url(self, event_id: str) -> str:
        return f"{self.base_url}{ESPN_SITE_API_PATH}/{self.api_path}/summary?event={event_id}"

    # --- League hooks ---

    def parse_live_detail(self, competition: Dict[str, Any], status: Dict[str, Any]) -> Optional[Any]:
        """League-specific live state, or None when the game isn't in progress."""
        return None

    def pause_delay(self, event: Event) -> float:
        """Refresh delay for a live game; leagues with breaks slow down during them."""
        return ONE_MINUTE

    def format_live_detail(self, event: Event) -> str:
        return ""

    def sample_live_detail(self) -> Optional[Any]:
        """A plausible mid-game live state, for synthetic (debug) events."""
        return None

    # --- Status ---

    @staticmethod
    def parse_status(raw_state: Optional[str]) -> EventStatus:
        """Map ESPN's status.type.state onto EventStatus."""
        if not raw_state:
            return EventStatus.SCHEDULED
        state = raw_state.lower()
        if state in ("in", "live"):
            return EventStatus.LIVE
        if state == "post":
            return EventStatus.FINAL
        if state == "postponed":
            return EventStatus.POSTPONED
        if state == "cancelled":
            return EventStatus.CANCELLED
        return EventStatus.SCHEDULED

    # --- Parsing ---

    @staticmethod
    def _get_score(competitor: Dict[str, Any]) -> int:
        score = competitor.get("score")
        if not score:
            return 0
        if isinstance(score, dict):
            score = score.get("value") or score.get("displayValue") or 0
        try:
            return max(0, int(float(score)))
        except (TypeError, ValueError):
            return 0

    def _team_side(self, competitor: Dict[str, Any]) -> TeamSide:
        team = competitor.get("team") or {}
        try:
            team_id = int(team.get("id"))
        except (TypeError, ValueError):
            raise ParseError(f"Missing team id: {team.get('id')!r}")
        abbreviation = team.get("abbreviation") or ""
        if not abbreviation:
            raise ParseError(f"Missing abbreviation for team {team_id}")
        return TeamSide(team_id=team_id, abbreviation=abbreviation, score=self._get_score(competitor))

    def _build_event(
        self,
        event_id: Any,
        start_raw: Any,
        competition: Optional[Dict[str, Any]],
        preferred_team_id: Optional[int],
        venue: Optional[str] = None,
    ) -> Event:
        if not competition or not competition.get("competitors"):
            raise ParseError("No competition/competitors")

        competitors = competition["competitors"]
        home = next((c for c in competitors if c.get("homeAway") == "home"), None)
        away = next((c for c in competitors if c.get("homeAway") == "away"), None)
        if not home or not away:
            raise ParseError("Missing home or away competitor")

        start_time = parse_iso_datetime(start_raw)
        if start_time is None:
            raise ParseError(f"Invalid start time: {start_raw!r}")

        home_side = self._team_side(home)
        away_side = self._team_side(away)
        if home_side.team_id == away_side.team_id:
            raise ParseError(f"Home and away are the same team ({home_side.team_id})")

        status = competition.get("status") or {}
        status_type = status.get("type") or {}
        if venue is None:
            venue = (competition.get("venue") or {}).get("fullName") or ""

        return Event(
            id=str(event_id),
            start_time=start_time,
            home=home_side,
            away=away_side,
            status=self.parse_status(status_type.get("state") or "pre"),
            status_detail=status_type.get("detail") or "",
            venue=venue,
            live_detail=self.parse_live_detail(competition, status),
            preferred_team_id=preferred_team_id,
        )

    def parse_event(self, raw: Dict[str, Any], preferred_team_id: Optional[int] = None) -> Optional[Event]:
        """Parse one schedule event. Returns None for malformed payloads."""
        competition = (raw.get("competitions") or [None])[0]
        try:
            return self._build_event(raw.get("id"), raw.get("date"), competition, preferred_team_id)
        except ParseError as e:
            logger.debug("Dropping unparseable event", extra={
                "league": self.key,
                "event_id": raw.get("id"),
                "error": str(e)
            })
            return None

    def parse_live_update(self, payload: Dict[str, Any], preferred_team_id: Optional[int] = None) -> Optional[Event]:
        """Parse a game summary (live data) payload. Returns None for malformed payloads."""
        header = payload.get("header") if isinstance(payload, dict) else None
        if not header:
            return None
        competition = (header.get("competitions") or [None])[0]
        game_info = payload.get("gameInfo") or {}
        start_raw = game_info.get("startTime") or (competition or {}).get("date")
        venue = (game_info.get("venue") or {}).get("fullName")
        try:
            return self._build_event(header.get("id"), start_raw, competition, preferred_team_id, venue=venue)
        except ParseError as e:
            logger.debug("Dropping unparseable summary", extra={
                "league": self.key,
                "event_id": header.get("id"),
                "error": str(e)
            })
            return None

    def parse_schedule(
        self,
        payload: Dict[str, Any],
        preferred_team_id: Optional[int],
        start: datetime,
        end: datetime,
        now: Optional[datetime] = None,
    ) -> ScheduleSnapshot:
        """
        Group the events between start and end by local day.

        The earliest event after now is remembered even when it falls outside
        the window, so an offseason countdown has something to count to.
        """
        now = now or utc_now()
        by_day: Dict[str, List[Event]] = defaultdict(list)
        next_known: Optional[datetime] = None

        for raw in (payload or {}).get("events") or []:
            event = self.parse_event(raw, preferred_team_id)
            if event is None:
                continue
            if event.start_time > now and (next_known is None or event.start_time < next_known):
                next_known = event.start_time
            if event.start_time < start or event.start_time > end:
                continue
            by_day[local_date_str(event.start_time)].append(event)

        days = tuple(
            ScheduleDay(date=date, events=tuple(events))
            for date, events in sorted(by_day.items())
        )
        return ScheduleSnapshot(days=days, next_known_event_date=next_known)

    # --- Fetching ---

    async def fetch_schedule(self, client, team_id: int, start: datetime, end: datetime, now: Optional[datetime] = None) -> ScheduleSnapshot:
        """Fetch a team schedule. Network errors propagate to the caller."""
        data = await client.fetch_json(self.build_schedule_url(team_id))
        schedule = self.parse_schedule(data, team_id, start, end, now=now)
        logger.debug("Fetched schedule", extra={
            "league": self.key,
            "team_id": team_id,
            "days_count": len(schedule.days)
        })
        return schedule

    async def fetch_live(self, client, event: Event) -> Optional[Event]:
        """Fetch the summary for an event; None when the payload is unusable."""
        data = await client.fetch_json(self.build_summary_url(event.id))
        return self.parse_live_update(data, event.preferred_team_id)

    # --- Display ---

    def format_display(self, event: Event, timezone_name: str = "") -> Dict[str, Optional[str]]:
        """Short labels for a compact display: score/matchup on top, detail below."""
        is_home = event.is_home()
        mine, theirs = (event.home, event.away) if is_home else (event.away, event.home)

        if event.status == EventStatus.LIVE:
            return {
                "top_label": f"{mine.score} - {theirs.score}",
                "bottom_label": self.format_live_detail(event),
                "state_class": "live",
            }
        if event.status == EventStatus.FINAL:
            return {
                "top_label": f"{mine.score} - {theirs.score}",
                "bottom_label": "Final",
                "state_class": "final",
            }
        if event.status == EventStatus.SCHEDULED:
            return {
                "top_label": "vs" if is_home else "@",
                "bottom_label": format_game_time(event.start_time, timezone_name),
                "state_class": "pre",
            }
        return {
            "top_label": event.status.value,
            "bottom_label": theirs.abbreviation,
            "state_class": None,
        }


def format_game_time(start_time: datetime, timezone_name: str = "") -> str:
    """12-hour clock time ("7:05 PM") in the given zone, or local time."""
    local = start_time.astimezone()
    if timezone_name and timezone_name.strip():
        try:
            local = start_time.astimezone(ZoneInfo(timezone_name.strip()))
        except (ZoneInfoNotFoundError, ValueError):
            logger.debug("Unknown display timezone", extra={"time_zone": timezone_name})
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {suffix}"
