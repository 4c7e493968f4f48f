import asyncio

from refresh.scheduler import UpdateScheduler


def test_new_timer_replaces_pending_one():
    calls = []

    async def callback():
        calls.append("tick")

    async def run():
        scheduler = UpdateScheduler(callback)
        scheduler.schedule_update(10)
        scheduler.schedule_update(0.01)
        assert scheduler.has_pending_update
        await asyncio.sleep(0.05)
        assert not scheduler.has_pending_update
        scheduler.cleanup()

    asyncio.run(run())
    assert calls == ["tick"]


def test_negative_delay_runs_immediately():
    calls = []

    async def callback():
        calls.append("tick")

    async def run():
        scheduler = UpdateScheduler(callback)
        scheduler.schedule_update(-5)
        assert scheduler.last_delay == 0
        await asyncio.sleep(0.01)
        scheduler.cleanup()

    asyncio.run(run())
    assert calls == ["tick"]


def test_cancel_all_disarms_both_timers():
    calls = []

    async def callback():
        calls.append("tick")

    async def run():
        scheduler = UpdateScheduler(callback)
        scheduler.start()
        scheduler.schedule_update(0.01)
        scheduler.cancel_all()
        assert scheduler.next_run_at is None
        await asyncio.sleep(0.03)
        assert scheduler._midnight_timer is None

    asyncio.run(run())
    assert calls == []


def test_cleanup_drops_callback():
    calls = []

    async def callback():
        calls.append("tick")

    async def run():
        scheduler = UpdateScheduler(callback)
        scheduler.cleanup()
        scheduler._fire()
        await asyncio.sleep(0)
        return scheduler.running_tasks

    assert asyncio.run(run()) == set()
    assert calls == []


def test_midnight_timer_forces_update_and_rearms(monkeypatch):
    calls = []

    async def callback():
        calls.append("midnight")

    monkeypatch.setattr("refresh.scheduler.seconds_until_midnight", lambda: 0.01)

    async def run():
        scheduler = UpdateScheduler(callback)
        scheduler.start()
        first_timer = scheduler._midnight_timer
        await asyncio.sleep(0.015)
        rearmed = scheduler._midnight_timer
        scheduler.cleanup()
        return first_timer, rearmed

    first_timer, rearmed = asyncio.run(run())
    assert calls
    assert rearmed is not None
    assert rearmed is not first_timer
