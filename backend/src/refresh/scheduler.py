"""
Update Scheduler - arms the next-cycle timer and the midnight rollover timer.

Only one next-cycle timer exists at a time; arming a new one replaces it. The
midnight timer is independent and forces a cycle at every local day boundary
so "today" is re-derived even when the computed delay is very long.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, Set

from utils.dates import seconds_until_midnight, utc_now

logger = logging.getLogger(__name__)


class UpdateScheduler:
    """Timer owner for the sync loop. Must be used from a running event loop."""

    def __init__(self, update_callback: Callable[[], Awaitable[None]]):
        self._update_callback: Optional[Callable[[], Awaitable[None]]] = update_callback
        self._timer: Optional[asyncio.TimerHandle] = None
        self._midnight_timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        self.next_run_at: Optional[datetime] = None
        self.last_delay: Optional[float] = None

    def start(self):
        """Arm the midnight rollover timer."""
        self._schedule_midnight_update()

    def _schedule_midnight_update(self):
        if self._midnight_timer is not None:
            self._midnight_timer.cancel()
        delay = seconds_until_midnight()
        loop = asyncio.get_running_loop()
        self._midnight_timer = loop.call_later(delay, self._on_midnight)
        logger.debug("Midnight update armed", extra={"delay_seconds": round(delay)})

    def _on_midnight(self):
        self._midnight_timer = None
        logger.info("Midnight reached, forcing update")
        self._fire()
        self._schedule_midnight_update()

    def schedule_update(self, delay: float):
        """Run the update callback after delay seconds, replacing any pending timer."""
        self.cancel()
        delay = max(0.0, float(delay))
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._on_timer)
        self.last_delay = delay
        self.next_run_at = utc_now() + timedelta(seconds=delay)
        logger.debug("Next update scheduled", extra={"delay_seconds": round(delay, 1)})

    def _on_timer(self):
        self._timer = None
        self.next_run_at = None
        self._fire()

    def _fire(self):
        if self._update_callback is None:
            return
        task = asyncio.ensure_future(self._update_callback())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def has_pending_update(self) -> bool:
        return self._timer is not None

    @property
    def running_tasks(self) -> Set[asyncio.Task]:
        return {task for task in self._tasks if not task.done()}

    def cancel(self):
        """Cancel the pending next-cycle timer (the midnight timer stays armed)."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            self.next_run_at = None

    def cancel_all(self):
        self.cancel()
        if self._midnight_timer is not None:
            self._midnight_timer.cancel()
            self._midnight_timer = None

    def cleanup(self):
        self.cancel_all()
        self._update_callback = None
