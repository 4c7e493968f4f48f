import pytest

from conftest import make_config


def test_enabled_leagues_in_display_order():
    config = make_config(enable_nfl=True, enable_nhl=True, nfl_team=" PHI ")
    assert config.enabled_leagues() == [("mlb", "pit"), ("nfl", "phi"), ("nhl", "pit")]

    config = make_config(enable_mlb=False)
    assert config.enabled_leagues() == []


def test_live_refresh_override():
    assert make_config(live_refresh_seconds=0).live_refresh_override is None
    assert make_config(live_refresh_seconds=10).live_refresh_override == 10


def test_debug_mode_is_normalized():
    assert make_config(debug_mode=" Mixed ").debug_mode == "mixed"


@pytest.mark.parametrize("overrides, message", [
    ({"max_concurrent_requests": 0}, "MAX_CONCURRENT_REQUESTS"),
    ({"max_retries": -1}, "MAX_RETRIES"),
    ({"live_refresh_seconds": -5}, "LIVE_REFRESH_SECONDS"),
    ({"debug_mode": "chaos"}, "DEBUG_MODE"),
    ({"schedule_window_days": 0}, "SCHEDULE_WINDOW_DAYS"),
])
def test_invalid_settings_rejected(overrides, message):
    with pytest.raises(ValueError, match=message):
        make_config(**overrides)
