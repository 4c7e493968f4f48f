import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from config import Config
from leagues.models import Event, EventStatus, TeamSide
from utils.dates import local_day_start, utc_now

PIT_MLB = 23
PHI_MLB = 22

ESPN_STATES = {
    EventStatus.SCHEDULED: "pre",
    EventStatus.LIVE: "in",
    EventStatus.FINAL: "post",
    EventStatus.POSTPONED: "postponed",
    EventStatus.CANCELLED: "cancelled",
}


def make_config(**overrides) -> Config:
    settings = dict(
        max_concurrent_requests=3,
        max_requests_per_minute=1000,
        request_timeout=5,
        max_retries=3,
        retry_backoff_base=1.0,
        http_cache_enabled=True,
        shutdown_grace_seconds=0.5,
        enable_mlb=True,
        enable_nfl=False,
        enable_nhl=False,
        mlb_team="pit",
        live_refresh_seconds=0,
        time_zone="",
        debug_mode="",
        icon_cache_dir="/tmp/sports-sync-test-icons",
        log_format="text",
    )
    settings.update(overrides)
    return Config(**settings)


def local_noon(day_offset: int = 0) -> datetime:
    """Noon on the local calendar, so +/- a few hours stays on the same local day."""
    return local_day_start(utc_now()) + timedelta(days=day_offset, hours=12)


def make_event(
    status: EventStatus = EventStatus.SCHEDULED,
    start_time: Optional[datetime] = None,
    event_id: str = "401",
    home_id: int = PIT_MLB,
    away_id: int = PHI_MLB,
    home_score: int = 0,
    away_score: int = 0,
    live_detail: Any = None,
    preferred_team_id: Optional[int] = PIT_MLB,
) -> Event:
    return Event(
        id=event_id,
        start_time=start_time or local_noon(),
        home=TeamSide(home_id, "PIT" if home_id == PIT_MLB else "PHI", home_score),
        away=TeamSide(away_id, "PHI" if away_id == PHI_MLB else "PIT", away_score),
        status=status,
        live_detail=live_detail,
        preferred_team_id=preferred_team_id,
    )


def espn_competition(
    status: EventStatus = EventStatus.SCHEDULED,
    home_id: int = PIT_MLB,
    away_id: int = PHI_MLB,
    home_score: Any = None,
    away_score: Any = None,
    detail: str = "",
    period: int = 0,
    display_clock: str = "",
) -> Dict[str, Any]:
    def competitor(team_id, side, score):
        entry = {
            "homeAway": side,
            "team": {"id": str(team_id), "abbreviation": "PIT" if team_id == PIT_MLB else "PHI"},
        }
        if score is not None:
            entry["score"] = score
        return entry

    return {
        "competitors": [
            competitor(home_id, "home", home_score),
            competitor(away_id, "away", away_score),
        ],
        "status": {
            "period": period,
            "displayClock": display_clock,
            "type": {"state": ESPN_STATES[status], "detail": detail},
        },
        "venue": {"fullName": "PNC Park"},
    }


def espn_event(event_id: str, start_time: datetime, **competition) -> Dict[str, Any]:
    return {
        "id": event_id,
        "date": start_time.astimezone().isoformat(),
        "competitions": [espn_competition(**competition)],
    }


def espn_summary(event_id: str, start_time: datetime, **competition) -> Dict[str, Any]:
    return {
        "header": {
            "id": event_id,
            "competitions": [dict(espn_competition(**competition), date=start_time.isoformat())],
        },
        "gameInfo": {"venue": {"fullName": "PNC Park"}},
    }


@pytest.fixture
def config() -> Config:
    return make_config()
