"""
Synthetic results for DEBUG_MODE.

Lets the display and API be exercised without touching the network: every
tracked source gets a made-up event in the requested state.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from leagues.models import Event, EventStatus, TeamSide
from refresh.sources import SourceResult, TrackedSource
from utils.dates import local_day_start, utc_now

# mixed mode cycles through these, one per source
MIXED_STATES = ("live", "pre", "final")

DEBUG_EVENT_PREFIX = "debug"


def _opponent(source: TrackedSource) -> TeamSide:
    for team in source.league.teams:
        if team["id"] != source.team_id:
            return TeamSide(team_id=team["id"], abbreviation=team["abbrev"])
    return TeamSide(team_id=0, abbreviation="OPP")


def _own_side(source: TrackedSource) -> TeamSide:
    team = source.league.get_team(source.team_id) if source.team_id is not None else None
    if team:
        return TeamSide(team_id=team["id"], abbreviation=team["abbrev"])
    return TeamSide(team_id=-1, abbreviation=(source.team_code or "HOME").upper())


def _pregame_start(now: datetime) -> datetime:
    """7:10 PM local today, or tomorrow once that has passed."""
    start = local_day_start(now) + timedelta(hours=19, minutes=10)
    if start <= now:
        start += timedelta(days=1)
    return start


def _mock_event(source: TrackedSource, state: str, now: datetime) -> Event:
    home = _own_side(source)
    away = _opponent(source)
    event_id = f"{DEBUG_EVENT_PREFIX}-{source.source_key}-{state}"

    if state == "live":
        return Event(
            id=event_id,
            start_time=now - timedelta(hours=1),
            home=TeamSide(home.team_id, home.abbreviation, score=3),
            away=TeamSide(away.team_id, away.abbreviation, score=2),
            status=EventStatus.LIVE,
            status_detail="In Progress",
            venue="Debug Field",
            live_detail=source.league.sample_live_detail(),
            preferred_team_id=home.team_id,
        )
    if state == "final":
        return Event(
            id=event_id,
            start_time=now - timedelta(hours=3),
            home=TeamSide(home.team_id, home.abbreviation, score=5),
            away=TeamSide(away.team_id, away.abbreviation, score=4),
            status=EventStatus.FINAL,
            status_detail="Final",
            venue="Debug Field",
            preferred_team_id=home.team_id,
        )
    return Event(
        id=event_id,
        start_time=_pregame_start(now),
        home=home,
        away=away,
        status=EventStatus.SCHEDULED,
        status_detail="Scheduled",
        venue="Debug Field",
        preferred_team_id=home.team_id,
    )


def generate_debug_results(
    sources: List[TrackedSource],
    mode: str,
    now: Optional[datetime] = None,
) -> List[SourceResult]:
    """One synthetic result per source for the given debug mode."""
    now = now or utc_now()
    results = []
    for index, source in enumerate(sources):
        state = MIXED_STATES[index % len(MIXED_STATES)] if mode == "mixed" else mode
        if state == "offseason":
            results.append(SourceResult(
                source_key=source.source_key,
                league=source.league,
                team_id=source.team_id,
                is_offseason=True,
                next_known_date=now + timedelta(days=90),
            ))
            continue
        results.append(SourceResult(
            source_key=source.source_key,
            league=source.league,
            team_id=source.team_id,
            event=_mock_event(source, state, now),
        ))
    return results
