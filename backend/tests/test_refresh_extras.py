import asyncio
from datetime import timedelta

import httpx

from conftest import PIT_MLB, local_noon, make_config
from espn_api.client import SportsAPIClient
from leagues.baseball import BaseballLive
from leagues.models import EventStatus
from leagues.registry import get_league
from refresh.cache import IconCache
from refresh.debug import generate_debug_results
from refresh.icons import TeamIconFetcher
from refresh.sources import TrackedSource


def sources():
    return [
        TrackedSource("mlb", get_league("mlb"), PIT_MLB, "pit"),
        TrackedSource("nhl", get_league("nhl"), 16, "pit"),
    ]


def test_debug_live_results_use_league_live_state():
    now = local_noon()
    mlb, nhl = generate_debug_results(sources(), "live", now)
    assert mlb.event.status == EventStatus.LIVE
    assert isinstance(mlb.event.live_detail, BaseballLive)
    assert mlb.event.is_home()
    assert nhl.event.home.abbreviation == "PIT"


def test_debug_pregame_is_upcoming():
    now = local_noon()
    for result in generate_debug_results(sources(), "pre", now):
        assert result.event.status == EventStatus.SCHEDULED
        assert result.event.start_time > now


def test_debug_offseason():
    now = local_noon()
    [result, _] = generate_debug_results(sources(), "offseason", now)
    assert result.event is None
    assert result.is_offseason
    assert result.next_known_date == now + timedelta(days=90)


def test_icon_downloaded_once(tmp_path):
    requests = []

    def handler(request):
        requests.append(str(request.url))
        return httpx.Response(200, content=b"PNG")

    async def run():
        client = SportsAPIClient(make_config(), transport=httpx.MockTransport(handler))
        icons = TeamIconFetcher(client, tmp_path, IconCache(capacity=5))
        try:
            first = await icons.get_icon(get_league("mlb"), PIT_MLB)
            second = await icons.get_icon(get_league("mlb"), PIT_MLB)
            return first, second
        finally:
            await client.close()

    first, second = asyncio.run(run())
    assert first == second == tmp_path / f"mlb-{PIT_MLB}.png"
    assert first.read_bytes() == b"PNG"
    assert requests == ["https://a.espncdn.com/i/teamlogos/mlb/500/pit.png"]
