"""Supported leagues by key."""

from typing import Dict, Type

from leagues.base import League
from leagues.baseball import BaseballLeague
from leagues.football import FootballLeague
from leagues.hockey import HockeyLeague

LEAGUE_CLASSES: Dict[str, Type[League]] = {
    "mlb": BaseballLeague,
    "nfl": FootballLeague,
    "nhl": HockeyLeague,
}


def get_league(key: str, base_url: str = "https://site.api.espn.com") -> League:
    """Instantiate the league for a key (mlb, nfl, nhl)."""
    league_class = LEAGUE_CLASSES.get((key or "").lower())
    if league_class is None:
        raise ValueError(f"Unsupported league: {key}")
    return league_class(base_url=base_url)
