from datetime import timedelta

from conftest import local_noon, make_event
from leagues.models import EventStatus, ScheduleDay, ScheduleSnapshot
from refresh.selector import select_relevant
from utils.dates import local_date_str, local_day_start


def schedule_of(*events):
    by_day = {}
    for event in events:
        by_day.setdefault(event.local_date, []).append(event)
    return ScheduleSnapshot(days=tuple(
        ScheduleDay(date=date, events=tuple(day_events)) for date, day_events in sorted(by_day.items())
    ))


def test_live_event_wins_over_everything():
    now = local_noon()
    live = make_event(EventStatus.LIVE, start_time=now - timedelta(hours=1), event_id="live")
    scheduled = make_event(EventStatus.SCHEDULED, start_time=now + timedelta(hours=2), event_id="later")
    assert select_relevant(schedule_of(scheduled, live), local_date_str(now), now) is live


def test_live_event_filed_under_another_day_is_found():
    now = local_noon()
    live = make_event(EventStatus.LIVE, start_time=now - timedelta(days=1), event_id="live")
    assert select_relevant(schedule_of(live), local_date_str(now), now) is live


def test_recent_final_shown_before_later_game_today():
    now = local_noon()
    final = make_event(EventStatus.FINAL, start_time=now - timedelta(hours=3), event_id="final")
    nightcap = make_event(EventStatus.SCHEDULED, start_time=now + timedelta(hours=4), event_id="nightcap")
    assert select_relevant(schedule_of(final, nightcap), local_date_str(now), now) is final


def test_old_final_falls_through_to_next_game():
    now = local_noon()
    final = make_event(EventStatus.FINAL, start_time=now - timedelta(hours=6), event_id="final")
    nightcap = make_event(EventStatus.SCHEDULED, start_time=now + timedelta(hours=4), event_id="nightcap")
    assert select_relevant(schedule_of(final, nightcap), local_date_str(now), now) is nightcap


def test_future_game_when_nothing_today():
    now = local_noon()
    yesterday = make_event(EventStatus.FINAL, start_time=now - timedelta(days=1), event_id="old")
    friday = make_event(EventStatus.SCHEDULED, start_time=now + timedelta(days=3), event_id="fri")
    sunday = make_event(EventStatus.SCHEDULED, start_time=now + timedelta(days=5), event_id="sun")
    assert select_relevant(schedule_of(yesterday, sunday, friday), local_date_str(now), now) is friday


def test_postponed_games_are_skipped():
    now = local_noon()
    postponed = make_event(EventStatus.POSTPONED, start_time=now + timedelta(hours=2))
    assert select_relevant(schedule_of(postponed), local_date_str(now), now) is None


def test_empty_schedule_selects_nothing():
    now = local_noon()
    assert select_relevant(ScheduleSnapshot(), local_date_str(now), now) is None
    assert select_relevant(None, local_date_str(now), now) is None


def test_final_four_hours_ago_beats_game_later_today():
    now = local_noon()
    final = make_event(EventStatus.FINAL, start_time=now - timedelta(hours=4), event_id="final")
    later = make_event(EventStatus.SCHEDULED, start_time=now + timedelta(hours=3), event_id="later")
    assert select_relevant(schedule_of(final, later), local_date_str(now), now) is final


def test_six_hour_old_final_alone_selects_nothing():
    now = local_noon()
    final = make_event(EventStatus.FINAL, start_time=now - timedelta(hours=6), event_id="final")
    assert select_relevant(schedule_of(final), local_date_str(now), now) is None


def test_misfiled_final_is_ignored():
    now = local_day_start(local_noon()) + timedelta(hours=1)
    yesterday_final = make_event(EventStatus.FINAL, start_time=now - timedelta(hours=2), event_id="late")
    # Filed under today's bucket although it started yesterday (local)
    schedule = ScheduleSnapshot(days=(ScheduleDay(date=local_date_str(now), events=(yesterday_final,)),))
    assert select_relevant(schedule, local_date_str(now), now) is None
