#!/usr/bin/env python3
"""
Fetch and print a team's upcoming schedule, grouped by local day.

Usage:
    python3 scripts/show_schedule.py mlb pit
    python3 scripts/show_schedule.py nhl pit --days 7
"""

import argparse
import asyncio
import sys
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")

backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir / "src"))

from config import Config
from espn_api.client import SportsAPIClient, SportsAPIError
from leagues.base import format_game_time
from leagues.registry import LEAGUE_CLASSES, get_league
from refresh.selector import select_relevant
from utils.dates import local_date_str, local_day_start, utc_now
from utils.logger import setup_logging


async def show_schedule(league_key: str, team_code: str, days: int):
    config = Config()
    setup_logging(config)

    league = get_league(league_key, config.espn_api_base_url)
    team_id = league.team_id_for_code(team_code)
    if team_id is None:
        print(f"❌ Unknown {league.key} team code: {team_code}")
        sys.exit(2)

    now = utc_now()
    start = local_day_start(now)
    end = start + timedelta(days=days)

    async with SportsAPIClient(config) as client:
        try:
            schedule = await league.fetch_schedule(client, team_id, start, end, now=now)
        except SportsAPIError as e:
            print(f"❌ Schedule fetch failed: {e}")
            sys.exit(1)

    team = league.get_team(team_id)
    print(f"📅 {team['name']} ({league.name}), next {days} days\n")

    if not schedule.has_events():
        when = schedule.next_known_event_date
        print("No games in window." + (f" Next known game: {when.isoformat()}" if when else ""))
        return

    for day in schedule.days:
        print(day.date)
        for event in day.events:
            opponent = event.opponent()
            prefix = "vs" if event.is_home() else "@"
            time_label = format_game_time(event.start_time, config.time_zone)
            print(f"  {time_label:>8}  {prefix} {opponent.abbreviation:<4} {event.status.value}")

    selected = select_relevant(schedule, local_date_str(now), now)
    if selected:
        print(f"\n👉 Relevant game: {selected.id} ({selected.local_date})")


def main():
    parser = argparse.ArgumentParser(description="Show a team's upcoming schedule")
    parser.add_argument("league", choices=sorted(LEAGUE_CLASSES))
    parser.add_argument("team", help="Team code, e.g. pit")
    parser.add_argument("--days", type=int, default=14, help="Look-ahead window in days (default 14)")
    args = parser.parse_args()
    asyncio.run(show_schedule(args.league, args.team, args.days))


if __name__ == "__main__":
    main()
