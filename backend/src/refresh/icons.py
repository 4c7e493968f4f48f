"""
Team icon fetcher - downloads team logos once and remembers where they are.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from espn_api.client import SportsAPIClient
from leagues.base import League
from refresh.cache import IconCache

logger = logging.getLogger(__name__)


class TeamIconFetcher:
    """Resolves a team's logo to a local file, downloading it on first use."""

    def __init__(self, client: SportsAPIClient, icon_dir: Union[str, Path], cache: Optional[IconCache] = None):
        self.client = client
        self.icon_dir = Path(icon_dir)
        self.cache = cache if cache is not None else IconCache()

    def icon_path(self, league: League, team_id: int) -> Path:
        return self.icon_dir / f"{league.key}-{team_id}.png"

    async def get_icon(self, league: League, team_id: int) -> Optional[Path]:
        """
        Local path of the team's logo, or None for teams not on the roster.

        Network errors from the download propagate.
        """
        key = f"{league.key}:{team_id}"
        cached = self.cache.get(key)
        if cached and Path(cached).exists():
            return Path(cached)

        url = league.team_logo_url(team_id)
        if not url:
            return None

        dest = self.icon_path(league, team_id)
        if not dest.exists():
            logger.info("Downloading team logo", extra={"league": league.key, "team_id": team_id})
            await self.client.download_file(url, dest)

        self.cache.set(key, str(dest))
        return dest
